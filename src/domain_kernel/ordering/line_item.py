"""Line item entity, owned by an ``Order``."""

from __future__ import annotations

from domain_kernel.core.errors import DomainRuleViolation
from domain_kernel.domain.entity import Entity
from domain_kernel.domain.value_object import Money
from domain_kernel.ordering.identifiers import LineItemId, ProductId


class LineItem(Entity):
    """A quantity of one product at a fixed unit price.

    Build with ``LineItem.create``; outside an order, a line item is only
    ever seen as a copy handed out by ``Order.items``.
    """

    def __init__(
        self,
        line_id: LineItemId,
        product_id: ProductId,
        quantity: int,
        unit_price: Money,
    ) -> None:
        super().__init__(line_id)
        self._product_id = product_id
        self._quantity = quantity
        self._unit_price = unit_price

    @classmethod
    def create(
        cls,
        product_id: ProductId,
        quantity: int,
        unit_price: Money,
        *,
        line_id: LineItemId | None = None,
    ) -> LineItem:
        _check_quantity(quantity, line_id)
        if line_id is None:
            line_id = LineItemId.create()
        return cls(line_id, product_id, quantity, unit_price)

    @property
    def product_id(self) -> ProductId:
        return self._product_id

    @property
    def quantity(self) -> int:
        return self._quantity

    @property
    def unit_price(self) -> Money:
        return self._unit_price

    @property
    def subtotal(self) -> Money:
        return self._unit_price.multiply(self._quantity)

    def change_quantity(self, quantity: int) -> None:
        with self._transaction():
            _check_quantity(quantity, self._id)
            self._quantity = quantity


def _check_quantity(quantity: object, line_id: object) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise DomainRuleViolation(
            "line_item.quantity_positive",
            f"quantity must be a positive integer, got {quantity!r}",
            line_id,
        )
