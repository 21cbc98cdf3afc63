from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: str
    name: str
    price: Decimal
    stock: int  # lecture seule : écrit uniquement par le ledger
    reorder_limit: int
    max_stock_level: int
    location: str | None = None
    supplier_id: int | None = None
    last_updated: datetime


class StockHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entry_date: date
    stock: int
    delta: int
    reason: str
    timestamp: datetime
