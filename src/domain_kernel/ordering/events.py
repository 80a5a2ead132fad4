"""Events recorded by the ``Order`` aggregate."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from domain_kernel.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    customer_email: str = ""
    currency: str = ""


@dataclass(frozen=True)
class ItemAdded(DomainEvent):
    product_id: str | int = ""
    quantity: int = 0
    unit_price: Decimal = Decimal("0")
    order_total: Decimal = Decimal("0")


@dataclass(frozen=True)
class ItemRemoved(DomainEvent):
    product_id: str | int = ""
    order_total: Decimal = Decimal("0")


@dataclass(frozen=True)
class ItemQuantityChanged(DomainEvent):
    product_id: str | int = ""
    old_quantity: int = 0
    new_quantity: int = 0
    order_total: Decimal = Decimal("0")


@dataclass(frozen=True)
class CustomerEmailChanged(DomainEvent):
    old_email: str = ""
    new_email: str = ""


@dataclass(frozen=True)
class OrderSubmitted(DomainEvent):
    """The order left DRAFT; its items and total are now fixed."""

    total: Decimal = Decimal("0")
    item_count: int = 0


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    reason: str = ""
