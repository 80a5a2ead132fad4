"""Orchestration helper: save an aggregate, then dispatch its events.

Events recorded by an aggregate are published only once the repository
has confirmed the save.  When the save fails (conflict, storage error)
the events stay pending on the aggregate and nothing is published; the
caller decides whether to reload and retry.

Each event leaves the aggregate only after its own publish returned.  If
publishing fails part way, the unpublished events stay pending and a
later ``commit`` sends them again; the event log deduplicates on
``event_id``, so events already logged are not logged twice.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Generic, TypeVar

from domain_kernel.core.config import Settings
from domain_kernel.domain.aggregate import AggregateRoot
from domain_kernel.domain.events import DomainEvent
from domain_kernel.domain.identity import IdentityValue
from domain_kernel.domain.repository import RepositoryPort
from domain_kernel.infrastructure.event_bus import IEventBus
from domain_kernel.observability.logger import get_correlation_id, get_logger

logger = get_logger(__name__)

A = TypeVar("A", bound=AggregateRoot)


class AggregateSession(Generic[A]):
    """Load/commit facade over one repository and one event bus."""

    def __init__(
        self,
        repository: RepositoryPort[A],
        bus: IEventBus,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._repository = repository
        self._bus = bus
        events_config = (settings or Settings()).events
        self._stamp_correlation_id = events_config.stamp_correlation_id

    async def load(self, aggregate_id: IdentityValue) -> A | None:
        return await self._repository.find_by_id(aggregate_id)

    async def commit(
        self, aggregate: A, *, caused_by: DomainEvent | None = None
    ) -> list[DomainEvent]:
        """Save *aggregate* and publish the events it recorded.

        Pass *caused_by* when committing from an event handler: each event
        gets ``causation_id`` set to its ``event_id`` and inherits its
        correlation id.

        Returns the published events.  Errors from ``save`` propagate
        unchanged and leave every event pending; an error from ``publish``
        propagates and leaves that event and the ones after it pending.
        """
        await self._repository.save(aggregate)
        published: list[DomainEvent] = []
        # Only what was pending at save time; handlers may record more
        for _ in range(len(aggregate.pending_events)):
            event = self._stamp(aggregate.pending_events[0], caused_by)
            await self._bus.publish(event)
            aggregate.pull_events(1)
            published.append(event)
        logger.debug(
            "aggregate_committed",
            aggregate=type(aggregate).__name__,
            aggregate_id=aggregate.id.token,
            version=aggregate.version,
            events=len(published),
        )
        return published

    def _stamp(self, event: DomainEvent, caused_by: DomainEvent | None) -> DomainEvent:
        changes: dict[str, str] = {}
        if caused_by is not None and not event.causation_id:
            changes["causation_id"] = caused_by.event_id
        if not event.correlation_id:
            if caused_by is not None and caused_by.correlation_id:
                changes["correlation_id"] = caused_by.correlation_id
            elif self._stamp_correlation_id and get_correlation_id():
                changes["correlation_id"] = get_correlation_id()
        return replace(event, **changes) if changes else event
