"""Append-only log of dispatched domain events.

Design invariants
-----------------
1.  ``append()`` deduplicates on ``event.event_id``: an event committed
    twice is logged once.
2.  ``read()`` returns events in append order.
3.  Nothing is ever deleted or modified; ``clear()`` exists for tests.

This module provides:

*  ``IEventStore`` — the protocol the event bus writes to.
*  ``InMemoryEventStore`` — list-backed implementation for tests and
   local development.
"""

from __future__ import annotations

from typing import Any, Protocol

from domain_kernel.domain.events import DomainEvent


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class IEventStore(Protocol):
    """Append-only event log for audit."""

    async def append(self, event: DomainEvent) -> None:
        """Log *event* unless its ``event_id`` is already logged."""
        ...

    async def read(
        self,
        event_type: type[DomainEvent] | None = None,
        aggregate_id: Any = None,
        correlation_id: str | None = None,
    ) -> list[DomainEvent]:
        """Logged events in append order, optionally filtered."""
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryEventStore:
    """List-backed event log.  No persistence across restarts."""

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []
        self._seen_ids: set[str] = set()

    async def append(self, event: DomainEvent) -> None:
        if event.event_id in self._seen_ids:
            return
        self._seen_ids.add(event.event_id)
        self._events.append(event)

    async def read(
        self,
        event_type: type[DomainEvent] | None = None,
        aggregate_id: Any = None,
        correlation_id: str | None = None,
    ) -> list[DomainEvent]:
        """Filters combine; ``event_type`` matches the exact class."""
        return [
            event
            for event in self._events
            if (event_type is None or type(event) is event_type)
            and (aggregate_id is None or event.aggregate_id == aggregate_id)
            and (correlation_id is None or event.correlation_id == correlation_id)
        ]

    # -- Testing helpers ---------------------------------------------------

    def clear(self) -> None:
        self._events.clear()
        self._seen_ids.clear()

    def __len__(self) -> int:
        return len(self._events)
