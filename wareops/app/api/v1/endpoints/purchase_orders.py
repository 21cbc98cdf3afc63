from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.app.db.models.core_types import POStatus
from wareops.app.schemas.purchase_order import PurchaseOrderRead
from wareops.services import procurement

router = APIRouter(prefix="/purchase-orders")


class POLineCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_cost: Decimal | None = Field(default=None, ge=0)
    backorder_id: int | None = None


class POCreate(BaseModel):
    supplier_id: int
    expected_date: date | None = None
    lines: list[POLineCreate] = Field(min_length=1)


class POStatusUpdate(BaseModel):
    status: POStatus


@router.get("", response_model=list[PurchaseOrderRead])
def list_pos(status: POStatus | None = None, db: Session = Depends(get_db)):
    return procurement.list_purchase_orders(db, status=status)


@router.get("/{po_id}", response_model=PurchaseOrderRead)
def get_po(po_id: int, db: Session = Depends(get_db)):
    with service_errors():
        return procurement.get_purchase_order(db, po_id)


@router.post("", status_code=201)
def create_po(payload: POCreate, db: Session = Depends(get_db)):
    with service_errors():
        po_id = procurement.create_purchase_order(
            db,
            supplier_id=payload.supplier_id,
            expected_date=payload.expected_date,
            lines=[
                procurement.POLineRequest(
                    product_id=ln.product_id,
                    quantity=ln.quantity,
                    unit_cost=ln.unit_cost,
                    backorder_id=ln.backorder_id,
                )
                for ln in payload.lines
            ],
        )
        po = procurement.get_purchase_order(db, po_id)
    return {"id": po.id, "po_number": po.po_number}


@router.patch("/{po_id}/status")
def update_po_status(po_id: int, payload: POStatusUpdate, db: Session = Depends(get_db)):
    with service_errors():
        procurement.update_purchase_order_status(db, po_id, payload.status)
        po = procurement.get_purchase_order(db, po_id)
    return {"id": po.id, "status": po.status}


@router.delete("/{po_id}", status_code=204)
def delete_po(po_id: int, db: Session = Depends(get_db)):
    with service_errors():
        procurement.delete_purchase_order(db, po_id)
