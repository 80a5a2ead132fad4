"""Order <-> OrderRecord mapping."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from domain_kernel.core.errors import MappingError
from domain_kernel.domain.mapper import Mapper
from domain_kernel.domain.value_object import Email, Money
from domain_kernel.ordering.identifiers import LineItemId, OrderId, ProductId
from domain_kernel.ordering.line_item import LineItem
from domain_kernel.ordering.order import Order, OrderStatus
from domain_kernel.ordering.records import LineItemRecord, OrderRecord


class OrderMapper(Mapper[Order, OrderRecord]):
    """Rebuilds orders through their factories; snapshots via public reads.

    ``to_domain`` also accepts a plain mapping (e.g. decoded JSON), which
    is validated into an ``OrderRecord`` first.
    """

    aggregate_type = Order

    def _build(self, record: OrderRecord | Mapping[str, Any]) -> Order:
        if not isinstance(record, OrderRecord):
            record = OrderRecord.model_validate(record)
        items = [
            LineItem.create(
                ProductId.create(line.product_id),
                line.quantity,
                Money.create(line.unit_price, line.currency),
                line_id=LineItemId.create(line.line_id),
            )
            for line in record.items
        ]
        order = Order.reconstitute(
            order_id=OrderId.create(record.order_id),
            customer_email=Email.create(record.customer_email),
            currency=record.currency,
            status=OrderStatus(record.status),
            items=items,
            created_at=record.created_at,
            version=record.version,
        )
        stored_total = Money.create(record.total, record.currency)
        if order.total != stored_total:
            raise MappingError(
                "Order",
                f"stored total {stored_total} disagrees with items ({order.total})",
            )
        return order

    def _snapshot(self, aggregate: Order) -> OrderRecord:
        return OrderRecord(
            order_id=aggregate.id.token,
            version=aggregate.version,
            customer_email=aggregate.customer_email.address,
            currency=aggregate.currency,
            status=aggregate.status.value,
            total=aggregate.total.amount,
            created_at=aggregate.created_at,
            items=[
                LineItemRecord(
                    line_id=item.id.token,
                    product_id=item.product_id.token,
                    quantity=item.quantity,
                    unit_price=item.unit_price.amount,
                    currency=item.unit_price.currency,
                )
                for item in aggregate.items
            ],
        )
