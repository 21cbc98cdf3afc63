from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from wareops.app.db.models.models_v1 import Backorder, PurchaseOrder
from wareops.app.db.models.core_types import BackorderStatus, POStatus
from wareops.services.errors import InvariantViolation, NotFound
from wareops.services.transactions import run_in_transaction

logger = structlog.get_logger()

# un PO fermé ne résoudra plus aucun backorder
CLOSED_PO_STATUSES = (POStatus.received, POStatus.cancelled)


def get_backorder(db: Session, backorder_id: int) -> Backorder:
    bo = db.get(Backorder, backorder_id)
    if not bo:
        raise NotFound("Backorder", backorder_id)
    return bo


def record_shortfall(
    db: Session,
    *,
    order_id: int,
    client_id: int,
    product_id: int,
    quantity: int,
    date: datetime,
) -> Backorder:
    """
    Enregistre un manque (Pending) pour une paire (commande, produit).
    Une seule ligne par paire : un second manque s'y cumule.
    """
    if quantity <= 0:
        raise ValueError("Shortfall quantity must be positive")

    db.flush()
    existing = db.execute(
        select(Backorder)
        .where(Backorder.order_id == order_id)
        .where(Backorder.product_id == product_id)
    ).scalar_one_or_none()

    if existing:
        if existing.status != BackorderStatus.pending:
            raise InvariantViolation(
                f"Backorder {existing.id} for order {order_id} is already {existing.status.value}"
            )
        existing.quantity += quantity
        db.flush()
        return existing

    bo = Backorder(
        order_id=order_id,
        client_id=client_id,
        product_id=product_id,
        quantity=quantity,
        date=date,
        status=BackorderStatus.pending,
    )
    db.add(bo)
    db.flush()
    return bo


def resolve(db: Session, backorder_id: int, issuance_id: int | None = None) -> Backorder:
    """
    Passe le backorder à Fulfilled.
    L'appelant a DÉJÀ émis l'issuance compensatoire : aucun mouvement de stock ici.
    """
    bo = get_backorder(db, backorder_id)
    if bo.status == BackorderStatus.fulfilled:
        raise InvariantViolation(f"Backorder {bo.id} is already fulfilled")

    bo.status = BackorderStatus.fulfilled
    bo.issuance_id = issuance_id
    db.flush()
    return bo


def reopen(db: Session, backorder: Backorder) -> None:
    """
    Annule une résolution (suppression de l'issuance compensatoire).
    Un PO déjà Received ou Cancelled ne résoudra plus jamais ce backorder :
    le lien est retiré pour qu'il puisse être recommandé.
    """
    backorder.status = BackorderStatus.pending
    backorder.issuance_id = None
    if backorder.purchase_order_id is not None:
        po = db.get(PurchaseOrder, backorder.purchase_order_id)
        if po is None or po.status in CLOSED_PO_STATUSES:
            backorder.purchase_order_id = None


def find_pending_for_purchase_order(db: Session, po_id: int) -> list[Backorder]:
    db.flush()
    return list(
        db.execute(
            select(Backorder)
            .where(Backorder.purchase_order_id == po_id)
            .where(Backorder.status == BackorderStatus.pending)
            .order_by(Backorder.id)
        )
        .scalars()
        .all()
    )


def find_pending_for_order(db: Session, order_id: int) -> list[Backorder]:
    db.flush()
    return list(
        db.execute(
            select(Backorder)
            .where(Backorder.order_id == order_id)
            .where(Backorder.status == BackorderStatus.pending)
            .order_by(Backorder.id)
        )
        .scalars()
        .all()
    )


def link_to_purchase_order(db: Session, backorder_id: int, po_id: int) -> Backorder:
    bo = get_backorder(db, backorder_id)
    if bo.status != BackorderStatus.pending:
        raise InvariantViolation(f"Backorder {bo.id} is not pending")
    if bo.purchase_order_id is not None and bo.purchase_order_id != po_id:
        current = db.get(PurchaseOrder, bo.purchase_order_id)
        if current is not None and current.status not in CLOSED_PO_STATUSES:
            raise InvariantViolation(
                f"Backorder {bo.id} is already linked to purchase order {bo.purchase_order_id}"
            )
    bo.purchase_order_id = po_id
    db.flush()
    return bo


def list_backorders(db: Session, *, status: BackorderStatus | None = None) -> list[Backorder]:
    stmt = select(Backorder).order_by(Backorder.date.asc(), Backorder.id.asc())
    if status is not None:
        stmt = stmt.where(Backorder.status == status)
    return list(db.execute(stmt).scalars().all())


def delete_backorder(db: Session, backorder_id: int) -> None:
    def _work(tx: Session) -> None:
        bo = get_backorder(tx, backorder_id)
        if bo.status != BackorderStatus.pending:
            raise InvariantViolation(f"Backorder {bo.id} is fulfilled and cannot be deleted")
        tx.delete(bo)

    run_in_transaction(db, _work)
    logger.info("backorder.deleted", backorder_id=backorder_id)
