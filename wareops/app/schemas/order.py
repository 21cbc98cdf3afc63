from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from wareops.app.db.models.core_types import OrderLineStatus, OrderStatus


class OrderLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    quantity: int
    price: Decimal
    qty_issued: int
    qty_backordered: int
    status: OrderLineStatus


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    date: datetime
    status: OrderStatus
    total: Decimal
    purpose: str | None = None
    reordered_from: int | None = None
    lines: list[OrderLineRead]
