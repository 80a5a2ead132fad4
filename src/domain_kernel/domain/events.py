"""Domain event base type.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).
2.  ``event_id`` is a UUID4 generated at creation time; the event log
    deduplicates on it.
3.  ``aggregate_id`` / ``aggregate_version`` name the aggregate state that
    produced the event.  Events are recorded on the aggregate during a
    mutation and dispatched only after that state has been saved.
4.  ``correlation_id`` ties together everything started by one external
    request.  ``causation_id`` is the ``event_id`` of the event whose
    handler produced this one; both are stamped at commit time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from domain_kernel.core.ids import new_id as _uuid
from domain_kernel.core.ids import utc_now as _now


@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every domain event.

    Shared fields
    ~~~~~~~~~~~~~
    event_id           Unique identity (UUID4).  Dedup key.
    timestamp          UTC creation time.
    aggregate_id       Token of the aggregate that recorded the event.
    aggregate_version  Aggregate version right after the recording mutation.
    correlation_id     Request that started the chain ("" if none).
    causation_id       ``event_id`` of the triggering event ("" if none).
    """

    event_id: str = field(default_factory=_uuid)
    timestamp: datetime = field(default_factory=_now)
    aggregate_id: Any = None
    aggregate_version: int = 0
    correlation_id: str = ""
    causation_id: str = ""

    @property
    def event_type(self) -> str:
        return type(self).__qualname__
