from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.app.db.models.core_types import BackorderStatus
from wareops.app.schemas.backorder import BackorderRead
from wareops.services import backorders

router = APIRouter(prefix="/backorders")


@router.get("", response_model=list[BackorderRead])
def list_backorders(status: BackorderStatus | None = None, db: Session = Depends(get_db)):
    return backorders.list_backorders(db, status=status)


@router.delete("/{backorder_id}", status_code=204)
def delete_backorder(backorder_id: int, db: Session = Depends(get_db)):
    with service_errors():
        backorders.delete_backorder(db, backorder_id)
