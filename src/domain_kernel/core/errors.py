"""Custom exception hierarchy for the domain kernel.

Two branches never overlap:

* contract failures raised synchronously to the immediate caller
  (``ValidationError``, ``DomainRuleViolation``);
* persistence-boundary failures (``MappingError``, ``ConcurrencyConflict``,
  ``RepositoryError``), grouped under ``PersistenceError`` so upstream code
  cannot mistake them for domain errors.
"""

from __future__ import annotations

from typing import Any


class KernelError(Exception):
    """Base exception for all domain kernel errors."""


# --- Configuration ---
class ConfigError(KernelError):
    """Invalid or unreadable configuration."""


# --- Contract failures ---
class ValidationError(KernelError):
    """Raw input violates a value's own rule.

    Raised by value-object and identity factories.  No instance exists
    when this is raised.
    """

    def __init__(self, subject: str, reason: str, value: Any = None):
        self.subject = subject
        self.reason = reason
        self.value = value
        super().__init__(f"Invalid {subject}: {reason}")


class DomainRuleViolation(KernelError):
    """An operation violates a business invariant or a state transition."""

    def __init__(self, rule: str, message: str, entity_id: Any = None):
        self.rule = rule
        self.entity_id = entity_id
        super().__init__(f"[{rule}] {message}")


# --- Persistence boundary ---
class PersistenceError(KernelError):
    """Failure originating at the repository / mapper boundary."""


class MappingError(PersistenceError):
    """Persisted data cannot reconstruct a valid aggregate (corruption)."""

    def __init__(self, aggregate_type: str, reason: str):
        self.aggregate_type = aggregate_type
        self.reason = reason
        super().__init__(f"Cannot map record to {aggregate_type}: {reason}")


class ConcurrencyConflict(PersistenceError):
    """The aggregate's version marker was stale at save time."""

    def __init__(
        self,
        aggregate_id: Any,
        expected_version: int | None,
        actual_version: int | None,
    ):
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Concurrent update of {aggregate_id}: expected version "
            f"{expected_version}, found {actual_version}"
        )


class RepositoryError(PersistenceError):
    """Opaque storage or transport failure."""
