"""Typed identities for the ordering context."""

from __future__ import annotations

from dataclasses import dataclass

from domain_kernel.domain.identity import IdentityValue


@dataclass(frozen=True, eq=False)
class OrderId(IdentityValue):
    """Identity of an ``Order`` aggregate."""


@dataclass(frozen=True, eq=False)
class LineItemId(IdentityValue):
    """Identity of a ``LineItem`` inside an order."""


@dataclass(frozen=True, eq=False)
class ProductId(IdentityValue):
    """Reference to a product aggregate owned by another context."""
