"""Repository contract and its generic implementation.

This module provides:

*  ``RepositoryPort`` — the load/save contract over whole aggregates.
*  ``RecordStore`` — the capability the kernel consumes from a storage
   collaborator: versioned, atomic compare-and-set of opaque records.
*  ``StoredRecord`` — a record together with its stored version.
*  ``Repository`` — ``RepositoryPort`` implemented on a ``Mapper`` and a
   ``RecordStore`` injected through the constructor.

Design invariants
-----------------
1.  ``find_by_id`` returns ``None`` when nothing matches; it never raises
    for absence and never returns partial projections.
2.  ``save`` writes the complete record in one compare-and-set.  The store
    holds either the pre-save or the post-save record, never a mixture.
3.  ``save`` expects the stored version to equal the aggregate's
    ``persisted_version``, or no stored record at all for an aggregate
    that has never been persisted.  Otherwise ``ConcurrencyConflict`` is
    raised and nothing is written.  The kernel never retries.
4.  Store failures other than conflicts surface as ``RepositoryError``;
    record corruption surfaces as ``MappingError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from domain_kernel.core.errors import (
    ConcurrencyConflict,
    MappingError,
    PersistenceError,
    RepositoryError,
)
from domain_kernel.domain.aggregate import AggregateRoot
from domain_kernel.domain.identity import IdentityValue
from domain_kernel.domain.mapper import Mapper
from domain_kernel.observability.logger import get_logger

logger = get_logger(__name__)

A = TypeVar("A", bound=AggregateRoot)
R = TypeVar("R")


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StoredRecord(Generic[R]):
    """An opaque record and the version it was stored at."""

    key: Any
    version: int
    record: R


@runtime_checkable
class RecordStore(Protocol[R]):
    """Versioned record storage consumed by ``Repository``."""

    async def read(self, key: Any) -> StoredRecord[R] | None:
        """Return the stored record for *key*, or ``None``."""
        ...

    async def compare_and_set(
        self,
        key: Any,
        record: R,
        *,
        expected_version: int | None,
        new_version: int,
    ) -> None:
        """Atomically replace the record for *key*.

        The write happens only if the stored version equals
        *expected_version*, or, when it is ``None``, only if no record
        exists yet.  Otherwise ``ConcurrencyConflict`` is raised and nothing
        changes.
        """
        ...

    async def remove(self, key: Any, *, expected_version: int | None = None) -> bool:
        """Delete the record for *key*; return whether one existed."""
        ...


@runtime_checkable
class RepositoryPort(Protocol[A]):
    """Load/save contract over whole aggregates."""

    async def find_by_id(self, aggregate_id: IdentityValue) -> A | None:
        ...

    async def save(self, aggregate: A) -> None:
        ...

    async def delete(self, aggregate_id: IdentityValue) -> bool:
        ...


# ---------------------------------------------------------------------------
# Generic implementation
# ---------------------------------------------------------------------------

class Repository(Generic[A, R]):
    """``RepositoryPort`` built from a mapper and an injected record store."""

    def __init__(self, store: RecordStore[R], mapper: Mapper[A, R]) -> None:
        self._store = store
        self._mapper = mapper

    async def find_by_id(self, aggregate_id: IdentityValue) -> A | None:
        """Load the aggregate stored under *aggregate_id*, or ``None``."""
        stored = await self._call(self._store.read(aggregate_id.token), "read")
        if stored is None:
            return None
        aggregate = self._mapper.to_domain(stored.record)
        if aggregate.version != stored.version:
            # The record's own version marker must agree with the store's
            raise MappingError(
                type(aggregate).__name__,
                f"record version {aggregate.version} != stored version {stored.version}",
            )
        logger.debug(
            "aggregate_loaded",
            aggregate=type(aggregate).__name__,
            aggregate_id=aggregate_id.token,
            version=stored.version,
        )
        return aggregate

    async def save(self, aggregate: A) -> None:
        """Persist *aggregate* if nobody else saved it since it was loaded.

        Raises
        ------
        ConcurrencyConflict
            If the stored version moved past ``aggregate.persisted_version``,
            or a new aggregate's identity is already taken.
        RepositoryError
            On any other storage failure.

        An aggregate without unsaved changes has nothing to write and is
        left alone.
        """
        if not aggregate.has_unsaved_changes:
            return
        record = self._mapper.to_persistence(aggregate)
        try:
            await self._call(
                self._store.compare_and_set(
                    aggregate.id.token,
                    record,
                    expected_version=aggregate.persisted_version,
                    new_version=aggregate.version,
                ),
                "compare_and_set",
            )
        except ConcurrencyConflict:
            logger.warning(
                "save_conflict",
                aggregate=type(aggregate).__name__,
                aggregate_id=aggregate.id.token,
                expected_version=aggregate.persisted_version,
            )
            raise
        aggregate.mark_persisted()
        logger.debug(
            "aggregate_saved",
            aggregate=type(aggregate).__name__,
            aggregate_id=aggregate.id.token,
            version=aggregate.version,
        )

    async def delete(self, aggregate_id: IdentityValue) -> bool:
        """Remove whatever is stored under *aggregate_id*."""
        removed = await self._call(self._store.remove(aggregate_id.token), "remove")
        logger.debug("aggregate_deleted", aggregate_id=aggregate_id.token, removed=removed)
        return removed

    async def remove(self, aggregate: A) -> bool:
        """Remove *aggregate* only if the stored copy is the one it was loaded from.

        A never-persisted aggregate owns no stored record: nothing is removed.
        """
        if aggregate.is_new:
            return False
        return await self._call(
            self._store.remove(
                aggregate.id.token, expected_version=aggregate.persisted_version
            ),
            "remove",
        )

    @staticmethod
    async def _call(awaitable: Any, operation: str) -> Any:
        try:
            return await awaitable
        except PersistenceError:
            raise
        except Exception as exc:
            raise RepositoryError(f"Record store {operation} failed: {exc}") from exc
