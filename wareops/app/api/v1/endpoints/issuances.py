from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.app.schemas.issuance import IssuanceRead
from wareops.services import issuance as issuance_service

router = APIRouter(prefix="/issuances")


class IssuanceLineCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class IssuanceCreate(BaseModel):
    client_id: int
    issued_by: str = Field(min_length=1, max_length=200)
    order_id: int | None = None
    received_by: str | None = Field(default=None, max_length=200)
    remarks: str | None = None
    lines: list[IssuanceLineCreate] = Field(min_length=1)


@router.get("", response_model=list[IssuanceRead])
def list_issuances(order_id: int | None = None, db: Session = Depends(get_db)):
    return issuance_service.list_issuances(db, order_id=order_id)


@router.get("/{issuance_id}", response_model=IssuanceRead)
def get_issuance(issuance_id: int, db: Session = Depends(get_db)):
    with service_errors():
        return issuance_service.get_issuance(db, issuance_id)


@router.post("", status_code=201)
def create_issuance(payload: IssuanceCreate, db: Session = Depends(get_db)):
    with service_errors():
        issuance_id = issuance_service.create_issuance(
            db,
            client_id=payload.client_id,
            lines=[(ln.product_id, ln.quantity) for ln in payload.lines],
            issued_by=payload.issued_by,
            order_id=payload.order_id,
            received_by=payload.received_by,
            remarks=payload.remarks,
        )
    return {"id": issuance_id}


@router.delete("/{issuance_id}", status_code=204)
def delete_issuance(issuance_id: int, db: Session = Depends(get_db)):
    with service_errors():
        issuance_service.delete_issuance(db, issuance_id)
