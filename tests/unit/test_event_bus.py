"""Tests for InMemoryEventBus and its store integration."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from domain_kernel.domain.events import DomainEvent
from domain_kernel.infrastructure.event_bus import IEventBus, InMemoryEventBus
from domain_kernel.infrastructure.event_store import InMemoryEventStore
from domain_kernel.ordering.events import ItemAdded, OrderCancelled, OrderCreated


@dataclass(frozen=True)
class PriorityItemAdded(ItemAdded):
    priority: int = 0


class TestDispatch:
    def test_is_an_event_bus(self, bus: InMemoryEventBus):
        assert isinstance(bus, IEventBus)

    @pytest.mark.asyncio
    async def test_handler_receives_matching_events(self, bus: InMemoryEventBus):
        received: list[DomainEvent] = []

        async def handler(event: DomainEvent) -> None:
            received.append(event)

        bus.subscribe(OrderCreated, handler)
        await bus.publish(OrderCreated(customer_email="a@b.io"))
        await bus.publish(OrderCancelled())
        assert [type(e) for e in received] == [OrderCreated]
        assert bus.messages_processed == 1

    @pytest.mark.asyncio
    async def test_base_class_subscription_sees_subclasses(self, bus: InMemoryEventBus):
        everything: list[DomainEvent] = []
        additions: list[DomainEvent] = []

        async def on_any(event: DomainEvent) -> None:
            everything.append(event)

        async def on_added(event: DomainEvent) -> None:
            additions.append(event)

        bus.subscribe(DomainEvent, on_any)
        bus.subscribe(ItemAdded, on_added)
        await bus.publish(PriorityItemAdded(priority=1))
        await bus.publish(OrderCancelled())
        assert len(everything) == 2
        assert [type(e) for e in additions] == [PriorityItemAdded]

    @pytest.mark.asyncio
    async def test_handlers_run_in_subscription_order(self, bus: InMemoryEventBus):
        calls: list[str] = []

        async def first(event: DomainEvent) -> None:
            calls.append("first")

        async def second(event: DomainEvent) -> None:
            calls.append("second")

        bus.subscribe(OrderCreated, first)
        bus.subscribe(OrderCreated, second)
        await bus.publish(OrderCreated())
        assert calls == ["first", "second"]


class TestHandlerFailures:
    @pytest.mark.asyncio
    async def test_failure_is_isolated(self, bus: InMemoryEventBus):
        delivered: list[DomainEvent] = []

        async def broken(event: DomainEvent) -> None:
            raise RuntimeError("boom")

        async def healthy(event: DomainEvent) -> None:
            delivered.append(event)

        bus.subscribe(OrderCreated, broken)
        bus.subscribe(OrderCreated, healthy)
        event = OrderCreated()
        await bus.publish(event)

        assert delivered == [event]
        assert bus.get_error_counts() == {"OrderCreated": 1}
        [(dead_event, error)] = bus.dead_letters
        assert dead_event is event
        assert error == "boom"

    @pytest.mark.asyncio
    async def test_clear_dead_letters(self, bus: InMemoryEventBus):
        async def broken(event: DomainEvent) -> None:
            raise ValueError("bad")

        bus.subscribe(OrderCreated, broken)
        await bus.publish(OrderCreated())
        assert len(bus.clear_dead_letters()) == 1
        assert bus.dead_letters == []


class TestHistoryAndStore:
    @pytest.mark.asyncio
    async def test_history(self, bus: InMemoryEventBus):
        await bus.publish(OrderCreated())
        await bus.publish(PriorityItemAdded())
        assert len(bus.get_history()) == 2
        assert len(bus.get_history(ItemAdded)) == 1
        bus.clear_history()
        assert bus.get_history() == []

    @pytest.mark.asyncio
    async def test_publish_appends_to_store(
        self, bus: InMemoryEventBus, event_store: InMemoryEventStore
    ):
        event = OrderCreated(aggregate_id="o-1")
        await bus.publish(event)
        await bus.publish(event)
        assert bus.event_store is event_store
        assert await event_store.read() == [event]

    @pytest.mark.asyncio
    async def test_bus_without_store(self):
        bus = InMemoryEventBus()
        await bus.publish(OrderCreated())
        assert bus.event_store is None
        assert len(bus.get_history()) == 1
