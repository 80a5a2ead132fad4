"""Persisted representation of an order.

Plain pydantic snapshots: no behavior, no validation beyond field types.
Domain rules are re-applied by ``OrderMapper.to_domain``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class LineItemRecord(BaseModel):
    line_id: str | int
    product_id: str | int
    quantity: int
    unit_price: Decimal
    currency: str


class OrderRecord(BaseModel):
    order_id: str | int
    version: int
    customer_email: str
    currency: str
    status: str
    total: Decimal
    created_at: datetime
    items: list[LineItemRecord] = Field(default_factory=list)
