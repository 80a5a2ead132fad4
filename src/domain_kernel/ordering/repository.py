"""Order repository."""

from __future__ import annotations

from domain_kernel.domain.repository import RecordStore, Repository
from domain_kernel.ordering.mapper import OrderMapper
from domain_kernel.ordering.order import Order
from domain_kernel.ordering.records import OrderRecord


class OrderRepository(Repository[Order, OrderRecord]):
    """Loads and saves whole ``Order`` aggregates through *store*."""

    def __init__(self, store: RecordStore[OrderRecord]) -> None:
        super().__init__(store, OrderMapper())
