"""Entity base class.

An entity is defined by its identity, not its attributes: two entities are
equal when they are of the same concrete type and carry equal identities.  Its identity is
assigned once at construction and exposed read-only; all state lives in
underscore attributes and changes only through behavior methods.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from domain_kernel.domain.identity import IdentityValue


class Entity:
    """Identity-bearing, mutable domain object.

    Behavior methods wrap their body in ``self._transaction()`` so a
    failure anywhere in the method leaves the entity exactly as it was.
    """

    def __init__(self, entity_id: IdentityValue) -> None:
        if not isinstance(entity_id, IdentityValue):
            raise TypeError(
                f"{type(self).__name__} identity must be an IdentityValue, "
                f"got {type(entity_id).__name__}"
            )
        self._id = entity_id

    @property
    def id(self) -> IdentityValue:
        return self._id

    # -- Transactions ------------------------------------------------------

    def _snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self.__dict__)

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self.__dict__.clear()
        self.__dict__.update(snapshot)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Restore the pre-call state if the wrapped block raises."""
        snapshot = self._snapshot()
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            raise

    # -- Identity semantics ------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return type(self) is type(other) and self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id.token!r})"
