"""Aggregate root base class.

Design invariants
-----------------
1.  Every mutation runs inside ``_mutation()``: the state is snapshotted,
    the body runs, then every declared invariant is checked.  Any failure
    restores the snapshot, so a rejected call leaves the aggregate
    unchanged (including its version and pending events).
2.  ``version`` increases by one per successful mutation.
    ``persisted_version`` is the version last loaded from or written to
    storage, or ``None`` for an aggregate that has never been stored; the
    repository compares it against the stored version for optimistic
    concurrency.
3.  Events are recorded during mutations and drained by the orchestration
    layer with ``pull_events()`` only after a successful save, one at a
    time as each is published.
4.  Aggregates are never observable half-built: factories finish with
    ``_finish_construction()``, which checks the invariants.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Self

from domain_kernel.core.errors import DomainRuleViolation
from domain_kernel.domain.entity import Entity
from domain_kernel.domain.events import DomainEvent
from domain_kernel.domain.identity import IdentityValue

Invariant = tuple[str, Callable[[], bool]]


class AggregateRoot(Entity):
    """Consistency boundary around an entity graph."""

    def __init__(self, aggregate_id: IdentityValue, *, version: int | None = None) -> None:
        """Start a new aggregate, or rebuild a stored one at *version*.

        Without *version* the aggregate is new: it starts at version 0 and
        has never been persisted.
        """
        super().__init__(aggregate_id)
        if version is not None and (
            isinstance(version, bool) or not isinstance(version, int) or version < 0
        ):
            raise DomainRuleViolation(
                "version.non_negative",
                f"version must be a non-negative integer, got {version!r}",
                aggregate_id,
            )
        self._version = version or 0
        self._persisted_version: int | None = version
        self._pending_events: list[DomainEvent] = []
        self._in_mutation = False

    # -- Versioning --------------------------------------------------------

    @property
    def version(self) -> int:
        """Current version marker."""
        return self._version

    @property
    def persisted_version(self) -> int | None:
        """Version last loaded from or written to storage (``None`` if never)."""
        return self._persisted_version

    @property
    def is_new(self) -> bool:
        return self._persisted_version is None

    @property
    def has_unsaved_changes(self) -> bool:
        return self._persisted_version is None or self._version != self._persisted_version

    def mark_persisted(self) -> None:
        """Record that the current version is now the stored version.

        Called by the repository after a successful save.
        """
        self._persisted_version = self._version

    # -- Invariants --------------------------------------------------------

    def _invariants(self) -> Iterable[Invariant]:
        """Yield ``(rule_name, predicate)`` pairs over the whole graph."""
        return ()

    def check_invariants(self) -> None:
        """Raise ``DomainRuleViolation`` naming the first broken invariant."""
        for rule, predicate in self._invariants():
            if not predicate():
                raise DomainRuleViolation(
                    rule,
                    f"{type(self).__name__} invariant '{rule}' does not hold",
                    self._id,
                )

    def _finish_construction(self) -> Self:
        self.check_invariants()
        return self

    # -- Mutation ----------------------------------------------------------

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Run one all-or-nothing mutation.

        Nested use (a root method calling another root method) joins the
        outer mutation: one snapshot, one invariant check, one version bump.
        """
        if self._in_mutation:
            yield
            return
        snapshot = self._snapshot()
        self._in_mutation = True
        try:
            yield
            self.check_invariants()
        except BaseException:
            self._restore(snapshot)
            raise
        else:
            self._version += 1
            self._stamp_pending_version()
        finally:
            self._in_mutation = False

    def _stamp_pending_version(self) -> None:
        # Events recorded in this mutation carry version 0 until it commits
        for index, event in enumerate(self._pending_events):
            if event.aggregate_version == 0:
                self._pending_events[index] = replace(event, aggregate_version=self._version)

    # -- Outbound events ---------------------------------------------------

    def _record(self, event: DomainEvent) -> None:
        """Queue *event* for dispatch after the next successful save."""
        if not self._in_mutation:
            raise RuntimeError("events can only be recorded inside a mutation")
        if event.aggregate_id is None:
            event = replace(event, aggregate_id=self._id.token)
        self._pending_events.append(event)

    def _defensive_copy(self, value: Any) -> Any:
        """Deep copy of internal state handed to callers."""
        return copy.deepcopy(value)

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._pending_events)

    def pull_events(self, count: int | None = None) -> list[DomainEvent]:
        """Drain and return the oldest *count* pending events (all by default)."""
        if count is None:
            count = len(self._pending_events)
        drained = self._pending_events[:count]
        del self._pending_events[:count]
        return drained

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id.token!r}, version={self._version})"
