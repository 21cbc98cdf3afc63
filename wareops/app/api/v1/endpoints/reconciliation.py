from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.services.reconciliation import check_and_update_awaiting_orders

router = APIRouter(prefix="/reconciliation")


@router.post("/awaiting-orders")
def run_awaiting_orders_sweep(db: Session = Depends(get_db)):
    with service_errors():
        updated = check_and_update_awaiting_orders(db)
    return {"updated_orders": updated}
