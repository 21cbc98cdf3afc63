from datetime import datetime

from pydantic import BaseModel, ConfigDict


class IssuanceLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    quantity: int


class IssuanceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    issuance_number: str
    client_id: int
    date: datetime
    order_id: int | None = None
    issued_by: str
    received_by: str | None = None
    remarks: str | None = None
    lines: list[IssuanceLineRead]
