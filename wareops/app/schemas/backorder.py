from datetime import datetime

from pydantic import BaseModel, ConfigDict

from wareops.app.db.models.core_types import BackorderStatus


class BackorderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    client_id: int
    product_id: int
    quantity: int
    date: datetime
    status: BackorderStatus
    purchase_order_id: int | None = None
    issuance_id: int | None = None
