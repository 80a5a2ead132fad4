"""Bidirectional mapping between aggregates and persisted records.

``to_domain`` rebuilds an aggregate by driving the same factories used at
runtime, so corrupt or legacy data can never bypass validation.  Anything
that goes wrong while rebuilding is reported as ``MappingError``: it
signals data corruption, not a live caller breaking a business rule.

``to_persistence`` snapshots an aggregate through its public read
accessors only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from domain_kernel.core.errors import (
    DomainRuleViolation,
    MappingError,
    ValidationError,
)
from domain_kernel.domain.aggregate import AggregateRoot

A = TypeVar("A", bound=AggregateRoot)
R = TypeVar("R")


class Mapper(ABC, Generic[A, R]):
    """Base class for aggregate <-> record mappers."""

    aggregate_type: type[AggregateRoot] = AggregateRoot

    def to_domain(self, record: R) -> A:
        """Rebuild a fully invariant-satisfying aggregate from *record*.

        Raises
        ------
        MappingError
            If the record is malformed or its data breaks a value rule or
            an aggregate invariant.
        """
        name = self.aggregate_type.__name__
        try:
            aggregate = self._build(record)
            aggregate.check_invariants()
        except MappingError:
            raise
        except (ValidationError, DomainRuleViolation) as exc:
            raise MappingError(name, str(exc)) from exc
        except (KeyError, AttributeError, TypeError, ValueError) as exc:
            raise MappingError(name, f"malformed record ({type(exc).__name__}: {exc})") from exc
        return aggregate

    def to_persistence(self, aggregate: A) -> R:
        """Return a serializable snapshot of *aggregate*."""
        return self._snapshot(aggregate)

    @abstractmethod
    def _build(self, record: R) -> A:
        """Drive the aggregate's factories from *record*."""

    @abstractmethod
    def _snapshot(self, aggregate: A) -> R:
        """Read *aggregate* through its public accessors into a record."""
