"""Shared fixtures for the domain-kernel test suite."""

from __future__ import annotations

from typing import Any

import pytest

from domain_kernel.application.session import AggregateSession
from domain_kernel.domain.repository import StoredRecord
from domain_kernel.infrastructure.event_bus import InMemoryEventBus
from domain_kernel.infrastructure.event_store import InMemoryEventStore
from domain_kernel.infrastructure.record_store import InMemoryRecordStore
from domain_kernel.ordering.identifiers import OrderId
from domain_kernel.ordering.order import Order
from domain_kernel.ordering.records import OrderRecord
from domain_kernel.ordering.repository import OrderRepository


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@pytest.fixture
def empty_order() -> Order:
    """A fresh DRAFT order with no items (version 1, never saved)."""
    return Order.create("buyer@example.com", order_id=OrderId.create("order-1"))


@pytest.fixture
def order_with_items() -> Order:
    """A DRAFT order holding p1 x2 @ 50 and p2 x1 @ 30 (total 130)."""
    order = Order.create("buyer@example.com", order_id=OrderId.create("order-2"))
    order.add_item("p1", 2, 50)
    order.add_item("p2", 1, 30)
    return order


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class BrokenRecordStore:
    """Record store whose every call fails like a dropped connection."""

    async def read(self, key: Any) -> StoredRecord[OrderRecord] | None:
        raise ConnectionError("connection reset")

    async def compare_and_set(
        self, key: Any, record: OrderRecord, *, expected_version: int, new_version: int
    ) -> None:
        raise ConnectionError("connection reset")

    async def remove(self, key: Any, *, expected_version: int | None = None) -> bool:
        raise ConnectionError("connection reset")


@pytest.fixture
def record_store() -> InMemoryRecordStore[OrderRecord]:
    return InMemoryRecordStore()


@pytest.fixture
def broken_store() -> BrokenRecordStore:
    return BrokenRecordStore()


@pytest.fixture
def order_repository(record_store: InMemoryRecordStore[OrderRecord]) -> OrderRepository:
    return OrderRepository(record_store)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@pytest.fixture
def event_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def bus(event_store: InMemoryEventStore) -> InMemoryEventBus:
    return InMemoryEventBus(event_store=event_store)


@pytest.fixture
def session(
    order_repository: OrderRepository, bus: InMemoryEventBus
) -> AggregateSession[Order]:
    return AggregateSession(order_repository, bus)
