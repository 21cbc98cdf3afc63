from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.app.db.models.models_v1 import Supplier
from wareops.services import directory

router = APIRouter(prefix="/suppliers")


class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    country: str | None = Field(default=None, min_length=2, max_length=2)  # ISO2
    lead_time_days: int = Field(default=14, ge=0)


def _supplier(s: Supplier) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "country": s.country,
        "lead_time_days": s.lead_time_days,
    }


@router.get("")
def list_suppliers(db: Session = Depends(get_db)):
    return [_supplier(s) for s in directory.list_suppliers(db)]


@router.get("/{supplier_id}")
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    with service_errors():
        s = directory.get_supplier(db, supplier_id)
        activity = directory.supplier_activity(db, supplier_id)
    return {**_supplier(s), **activity}


@router.post("", status_code=201)
def create_supplier(payload: SupplierCreate, db: Session = Depends(get_db)):
    with service_errors():
        supplier_id = directory.create_supplier(
            db,
            name=payload.name,
            country=payload.country,
            lead_time_days=payload.lead_time_days,
        )
        s = directory.get_supplier(db, supplier_id)
    return _supplier(s)
