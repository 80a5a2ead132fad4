"""Order aggregate.

Invariants
----------
* ``total`` equals the sum of the line item subtotals.  Every mutation
  adjusts it by the changed item's contribution, in the same operation.
* At most one line item per product (the business key), and line item
  ids are unique within the order.
* Every quantity is positive and every price is in the order's currency.
* A submitted order is never empty.

State machine::

    DRAFT ──submit──▶ SUBMITTED
      │                   │
      └──────cancel───────┴──▶ CANCELLED

Items can only change while the order is a DRAFT.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from enum import Enum

from domain_kernel.core.errors import DomainRuleViolation
from domain_kernel.core.ids import utc_now
from domain_kernel.domain.aggregate import AggregateRoot, Invariant
from domain_kernel.domain.identity import IdentityValue
from domain_kernel.domain.value_object import Email, Money
from domain_kernel.ordering.events import (
    CustomerEmailChanged,
    ItemAdded,
    ItemQuantityChanged,
    ItemRemoved,
    OrderCancelled,
    OrderCreated,
    OrderSubmitted,
)
from domain_kernel.ordering.identifiers import OrderId, ProductId
from domain_kernel.ordering.line_item import LineItem


class OrderStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


class Order(AggregateRoot):
    """Customer order: the root of its line items."""

    def __init__(
        self,
        order_id: OrderId,
        customer_email: Email,
        currency: str,
        created_at: datetime,
        *,
        version: int | None = None,
    ) -> None:
        super().__init__(order_id, version=version)
        self._customer_email = customer_email
        self._status = OrderStatus.DRAFT
        self._items: dict[ProductId, LineItem] = {}
        self._total = Money.zero(currency)
        self._created_at = created_at

    # -- Factories ---------------------------------------------------------

    @classmethod
    def create(
        cls,
        customer_email: Email | str,
        *,
        currency: str = "USD",
        order_id: OrderId | None = None,
    ) -> Order:
        """Open a new, empty DRAFT order."""
        email = _as_email(customer_email)
        currency = Money.zero(currency).currency
        if order_id is None:
            order_id = OrderId.create()
        order = cls(order_id, email, currency, utc_now())
        with order._mutation():
            order._record(
                OrderCreated(customer_email=email.address, currency=currency)
            )
        return order

    @classmethod
    def reconstitute(
        cls,
        *,
        order_id: OrderId,
        customer_email: Email,
        currency: str,
        status: OrderStatus,
        items: Iterable[LineItem],
        created_at: datetime,
        version: int,
    ) -> Order:
        """Rebuild a stored order without recording events.

        Items pass through the same duplicate and currency checks as
        ``add_item``; the invariants are checked before returning.
        """
        order = cls(order_id, customer_email, Money.zero(currency).currency, created_at, version=version)
        for item in items:
            order._attach(item)
        order._status = status
        return order._finish_construction()

    # -- Reads -------------------------------------------------------------

    @property
    def customer_email(self) -> Email:
        return self._customer_email

    @property
    def currency(self) -> str:
        return self._total.currency

    @property
    def status(self) -> OrderStatus:
        return self._status

    @property
    def total(self) -> Money:
        return self._total

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def items(self) -> tuple[LineItem, ...]:
        """Copies of the line items, in the order they were added."""
        return tuple(self._defensive_copy(item) for item in self._items.values())

    @property
    def item_count(self) -> int:
        return len(self._items)

    def item_for(self, product_id: ProductId | str | int) -> LineItem | None:
        item = self._items.get(_as_product_id(product_id))
        return None if item is None else self._defensive_copy(item)

    # -- Behavior ----------------------------------------------------------

    def add_item(
        self,
        product_id: ProductId | str | int,
        quantity: int,
        unit_price: Money | Decimal | int | str,
    ) -> None:
        """Add a line for a product not yet on the order.

        Raises
        ------
        DomainRuleViolation
            If the order is not a DRAFT, the product is already on the
            order, the quantity is not positive, or the price currency
            differs from the order's.
        ValidationError
            If the product id or the price is malformed.
        """
        with self._mutation():
            self._require_status(OrderStatus.DRAFT, "add items to")
            product = _as_product_id(product_id)
            price = unit_price if isinstance(unit_price, Money) else Money.create(unit_price, self.currency)
            item = LineItem.create(product, quantity, price)
            self._attach(item)
            self._record(
                ItemAdded(
                    product_id=product.token,
                    quantity=quantity,
                    unit_price=price.amount,
                    order_total=self._total.amount,
                )
            )

    def remove_item(self, product_id: ProductId | str | int) -> None:
        with self._mutation():
            self._require_status(OrderStatus.DRAFT, "remove items from")
            item = self._item(product_id)
            del self._items[item.product_id]
            self._total = self._total.subtract(item.subtotal)
            self._record(
                ItemRemoved(product_id=item.product_id.token, order_total=self._total.amount)
            )

    def change_quantity(self, product_id: ProductId | str | int, quantity: int) -> None:
        with self._mutation():
            self._require_status(OrderStatus.DRAFT, "change items of")
            item = self._item(product_id)
            old_quantity, old_subtotal = item.quantity, item.subtotal
            item.change_quantity(quantity)
            self._total = self._total.subtract(old_subtotal).add(item.subtotal)
            self._record(
                ItemQuantityChanged(
                    product_id=item.product_id.token,
                    old_quantity=old_quantity,
                    new_quantity=quantity,
                    order_total=self._total.amount,
                )
            )

    def change_customer_email(self, customer_email: Email | str) -> None:
        email = _as_email(customer_email)
        if email == self._customer_email:
            return
        with self._mutation():
            if self._status is OrderStatus.CANCELLED:
                raise DomainRuleViolation(
                    "order.not_cancelled",
                    "cannot change the e-mail of a cancelled order",
                    self._id,
                )
            old = self._customer_email
            self._customer_email = email
            self._record(CustomerEmailChanged(old_email=old.address, new_email=email.address))

    def submit(self) -> None:
        with self._mutation():
            self._require_status(OrderStatus.DRAFT, "submit")
            if not self._items:
                raise DomainRuleViolation(
                    "order.submitted_not_empty", "cannot submit an empty order", self._id
                )
            self._status = OrderStatus.SUBMITTED
            self._record(OrderSubmitted(total=self._total.amount, item_count=len(self._items)))

    def cancel(self, reason: str = "") -> None:
        with self._mutation():
            if self._status is OrderStatus.CANCELLED:
                raise DomainRuleViolation(
                    "order.not_cancelled", "order is already cancelled", self._id
                )
            self._status = OrderStatus.CANCELLED
            self._record(OrderCancelled(reason=reason))

    # -- Internals ---------------------------------------------------------

    def _attach(self, item: LineItem) -> None:
        if item.product_id in self._items:
            raise DomainRuleViolation(
                "order.unique_product",
                f"product {item.product_id} is already on the order",
                self._id,
            )
        if any(existing.id == item.id for existing in self._items.values()):
            raise DomainRuleViolation(
                "order.unique_line_item",
                f"line item {item.id} is already on the order",
                self._id,
            )
        if item.unit_price.currency != self.currency:
            raise DomainRuleViolation(
                "order.single_currency",
                f"price in {item.unit_price.currency}, order in {self.currency}",
                self._id,
            )
        self._items[item.product_id] = item
        self._total = self._total.add(item.subtotal)

    def _item(self, product_id: ProductId | str | int) -> LineItem:
        item = self._items.get(_as_product_id(product_id))
        if item is None:
            raise DomainRuleViolation(
                "order.item_exists", f"product {product_id} is not on the order", self._id
            )
        return item

    def _require_status(self, status: OrderStatus, action: str) -> None:
        if self._status is not status:
            raise DomainRuleViolation(
                f"order.must_be_{status.value}",
                f"cannot {action} a {self._status.value} order",
                self._id,
            )

    def _invariants(self) -> Iterable[Invariant]:
        yield "order.total_matches_items", self._total_matches_items
        yield "order.unique_product", lambda: all(
            key == item.product_id for key, item in self._items.items()
        )
        yield "order.unique_line_item", lambda: len(
            {item.id for item in self._items.values()}
        ) == len(self._items)
        yield "line_item.quantity_positive", lambda: all(
            item.quantity > 0 for item in self._items.values()
        )
        yield "order.single_currency", lambda: all(
            item.unit_price.currency == self.currency for item in self._items.values()
        )
        yield "order.submitted_not_empty", lambda: (
            self._status is not OrderStatus.SUBMITTED or bool(self._items)
        )

    def _total_matches_items(self) -> bool:
        expected = sum((item.subtotal.amount for item in self._items.values()), Decimal("0"))
        return self._total.amount == expected


def _as_email(value: Email | str) -> Email:
    return value if isinstance(value, Email) else Email.create(value)


def _as_product_id(value: ProductId | str | int) -> ProductId:
    if isinstance(value, ProductId):
        return value
    if isinstance(value, IdentityValue):
        return ProductId.create(value.token)
    return ProductId.create(value)
