"""Event bus abstraction and in-memory implementation.

Design goals
------------
1.  **Type-routed dispatching** — subscribers register for a
    ``DomainEvent`` class.  A published event reaches every handler
    registered for its class or any of its base classes, so subscribing
    to ``DomainEvent`` itself receives everything.
2.  **Event store integration** — if an ``IEventStore`` is provided,
    every published event is appended (idempotently) to the store.
3.  **Handler isolation** — the bus runs after a save has committed, so a
    failing handler must not undo anything.  Failures are logged and kept
    as dead letters; remaining handlers still run.

This module provides:

*  ``IEventBus``  — the protocol (interface).
*  ``InMemoryEventBus`` — deterministic in-process implementation.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from domain_kernel.domain.events import DomainEvent
from domain_kernel.infrastructure.event_store import IEventStore
from domain_kernel.observability.logger import get_logger

logger = get_logger(__name__)

# Type alias for async event handlers.
EventHandler = Callable[[DomainEvent], Awaitable[None]]


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventBus(Protocol):
    """Publish/subscribe bus for ``DomainEvent`` types."""

    async def publish(self, event: DomainEvent) -> None:
        """Publish *event* to all matching subscribers."""
        ...

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        """Register *handler* for *event_type* and its subclasses."""
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryEventBus:
    """Deterministic, in-process event bus.

    Parameters
    ----------
    event_store
        Optional ``IEventStore``.  When provided, every published event
        is appended to the store before handlers run.
    """

    def __init__(self, *, event_store: IEventStore | None = None) -> None:
        self._handlers: dict[
            type[DomainEvent], list[EventHandler]
        ] = defaultdict(list)
        self._history: list[DomainEvent] = []
        self._error_counts: dict[str, int] = defaultdict(int)
        self._dead_letters: list[tuple[DomainEvent, str]] = []
        self._messages_processed: int = 0
        self._event_store = event_store

    # -- Core API ----------------------------------------------------------

    async def publish(self, event: DomainEvent) -> None:
        """Publish *event* to all subscribed handlers."""
        self._history.append(event)

        if self._event_store is not None:
            await self._event_store.append(event)

        for handler in self._handlers_for(type(event)):
            try:
                await handler(event)
                self._messages_processed += 1
            except Exception as exc:
                key = event.event_type
                self._error_counts[key] += 1
                self._dead_letters.append((event, str(exc)))
                logger.exception(
                    "event_handler_failed",
                    event_type=key,
                    event_id=event.event_id,
                )

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        """Register *handler* for *event_type*."""
        self._handlers[event_type].append(handler)

    def _handlers_for(self, event_cls: type[DomainEvent]) -> list[EventHandler]:
        handlers: list[EventHandler] = []
        for cls in event_cls.__mro__:
            handlers.extend(self._handlers.get(cls, ()))
        return handlers

    # -- Observability -----------------------------------------------------

    def get_history(
        self,
        event_type: type[DomainEvent] | None = None,
    ) -> list[DomainEvent]:
        """Return published events, optionally filtered."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if isinstance(e, event_type)]

    def clear_history(self) -> None:
        """Clear the event history (testing helper)."""
        self._history.clear()

    def get_error_counts(self) -> dict[str, int]:
        return dict(self._error_counts)

    @property
    def dead_letters(self) -> list[tuple[DomainEvent, str]]:
        return list(self._dead_letters)

    def clear_dead_letters(self) -> list[tuple[DomainEvent, str]]:
        """Drain and return dead letters."""
        drained = self._dead_letters[:]
        self._dead_letters.clear()
        return drained

    @property
    def messages_processed(self) -> int:
        return self._messages_processed

    @property
    def event_store(self) -> IEventStore | None:
        """The attached event store, if any."""
        return self._event_store
