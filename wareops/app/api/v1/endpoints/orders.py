from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.app.db.models.core_types import OrderStatus
from wareops.app.schemas.order import OrderRead
from wareops.services import orders

router = APIRouter(prefix="/orders")


class OrderLineCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class OrderCreate(BaseModel):
    client_id: int
    purpose: str | None = None
    lines: list[OrderLineCreate] = Field(min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


def _result(result: orders.OrderResult) -> dict:
    return {"id": result.order_id, "status": result.status, "total": result.total}


@router.get("", response_model=list[OrderRead])
def list_orders(status: OrderStatus | None = None, db: Session = Depends(get_db)):
    return orders.list_orders(db, status=status)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    with service_errors():
        return orders.get_order(db, order_id)


@router.post("", status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    with service_errors():
        result = orders.create_order(
            db,
            client_id=payload.client_id,
            lines=[(ln.product_id, ln.quantity) for ln in payload.lines],
            purpose=payload.purpose,
        )
    return _result(result)


@router.post("/{order_id}/reorder", status_code=201)
def reorder(order_id: int, db: Session = Depends(get_db)):
    with service_errors():
        result = orders.reorder(db, order_id)
    return _result(result)


@router.patch("/{order_id}/status")
def update_order_status(order_id: int, payload: OrderStatusUpdate, db: Session = Depends(get_db)):
    with service_errors():
        previous = orders.update_order_status(db, order_id, payload.status)
    return {"id": order_id, "previous": previous, "status": payload.status}


@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: int, db: Session = Depends(get_db)):
    with service_errors():
        orders.delete_order(db, order_id)
