"""In-memory ``RecordStore`` adapter.

Design invariants
-----------------
1.  Records are deep-copied on the way in and on the way out, so nothing
    a caller holds aliases stored state.
2.  ``compare_and_set`` swaps the whole ``StoredRecord`` in a single
    assignment under an ``asyncio.Lock``: readers see the old record or
    the new one, never a mixture.
3.  A stale ``expected_version`` raises ``ConcurrencyConflict`` and leaves
    the store untouched.  ``expected_version=None`` claims a key that must
    not be taken yet.

Good for: unit tests, local development, and as the reference for
adapters over real storage engines.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Generic, TypeVar

from domain_kernel.core.errors import ConcurrencyConflict, RepositoryError
from domain_kernel.domain.repository import StoredRecord
from domain_kernel.observability.logger import get_logger

logger = get_logger(__name__)

R = TypeVar("R")


class InMemoryRecordStore(Generic[R]):
    """Dict-backed versioned record store.  No persistence across restarts."""

    def __init__(self) -> None:
        self._records: dict[Any, StoredRecord[R]] = {}
        self._lock = asyncio.Lock()
        self._writes = 0

    async def read(self, key: Any) -> StoredRecord[R] | None:
        stored = self._records.get(key)
        if stored is None:
            return None
        return copy.deepcopy(stored)

    async def compare_and_set(
        self,
        key: Any,
        record: R,
        *,
        expected_version: int | None,
        new_version: int,
    ) -> None:
        if expected_version is not None and new_version <= expected_version:
            raise RepositoryError(
                f"new version {new_version} must exceed expected version {expected_version}"
            )
        # Copy before taking the lock so the critical section is a compare and a swap
        snapshot = StoredRecord(key=key, version=new_version, record=copy.deepcopy(record))
        async with self._lock:
            current = self._records.get(key)
            actual = current.version if current is not None else None
            if actual != expected_version:
                raise ConcurrencyConflict(key, expected_version, actual)
            self._records[key] = snapshot
            self._writes += 1
        logger.debug("record_written", key=key, version=new_version)

    async def remove(self, key: Any, *, expected_version: int | None = None) -> bool:
        async with self._lock:
            current = self._records.get(key)
            if current is None:
                return False
            if expected_version is not None and current.version != expected_version:
                raise ConcurrencyConflict(key, expected_version, current.version)
            del self._records[key]
        logger.debug("record_removed", key=key)
        return True

    # -- Testing helpers ---------------------------------------------------

    @property
    def writes(self) -> int:
        """Number of successful writes."""
        return self._writes

    def clear(self) -> None:
        """Remove all records.  Testing only."""
        self._records.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
