from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from wareops.app.db.models.core_types import POStatus


class PurchaseOrderLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    quantity: int
    unit_cost: Decimal


class PurchaseOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    po_number: str
    supplier_id: int
    status: POStatus
    order_date: datetime
    expected_date: date | None = None
    received_date: datetime | None = None
    total: Decimal
    lines: list[PurchaseOrderLineRead]
