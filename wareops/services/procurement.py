"""
Procurement service.

Ce module orchestre les flux d'achat (création de PO, changements de statut,
réception) mais ne contient AUCUNE logique de calcul de stock.

Toute la logique stock est centralisée dans :
    wareops.services.inventory

Réception d'un PO (une seule transaction) :
    - PO -> Received (terminal, une seule fois)
    - +quantité par ligne de PO
    - pour chaque backorder Pending rattaché : issuance de la quantité
      manquante EXACTE, puis backorder -> Fulfilled
    - le surplus reste en stock, il n'est émis à personne
Puis, hors transaction : notification + balayage des commandes en attente.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from wareops.app.db.base import utcnow
from wareops.app.db.models.models_v1 import Backorder, Order, PurchaseOrder, PurchaseOrderLine, Supplier
from wareops.app.db.models.core_types import OrderStatus, POStatus
from wareops.services import backorders
from wareops.services.errors import InvariantViolation, NotFound
from wareops.services.inventory import apply_delta, get_product
from wareops.services.issuance import AUTO_ISSUER, issue_stock
from wareops.services.notifications import notify
from wareops.services.reconciliation import (
    apply_issued_quantities,
    check_and_update_awaiting_orders,
    refresh_order_status,
)
from wareops.services.transactions import run_in_transaction

logger = structlog.get_logger()


@dataclass(frozen=True)
class POLineRequest:
    product_id: int
    quantity: int
    unit_cost: Decimal | None = None
    backorder_id: int | None = None


def make_po_number() -> str:
    return f"PO-{utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def get_purchase_order(db: Session, po_id: int) -> PurchaseOrder:
    po = db.get(PurchaseOrder, po_id)
    if not po:
        raise NotFound("Purchase order", po_id)
    return po


def list_purchase_orders(db: Session, *, status: POStatus | None = None) -> list[PurchaseOrder]:
    stmt = select(PurchaseOrder).order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
    if status is not None:
        stmt = stmt.where(PurchaseOrder.status == status)
    return list(db.execute(stmt).scalars().all())


def create_purchase_order(
    db: Session,
    *,
    supplier_id: int,
    lines: Iterable[POLineRequest],
    expected_date: date | None = None,
) -> int:
    """
    Crée un PO Pending. Une ligne peut porter un backorder_id : le backorder
    est alors rattaché au PO, et la quantité commandée doit le couvrir.
    """
    lines = list(lines)
    if not lines:
        raise ValueError("A purchase order needs at least one line")

    def _work(tx: Session) -> tuple[int, str, str]:
        supplier = tx.get(Supplier, supplier_id)
        if not supplier:
            raise NotFound("Supplier", supplier_id)

        po = PurchaseOrder(
            po_number=make_po_number(),
            supplier_id=supplier.id,
            status=POStatus.pending,
            order_date=utcnow(),
            expected_date=expected_date,
        )
        tx.add(po)
        tx.flush()

        quantities: dict[int, int] = {}
        costs: dict[int, Decimal] = {}
        backorder_ids: dict[int, list[int]] = defaultdict(list)
        for ln in lines:
            if ln.quantity <= 0:
                raise ValueError(f"Quantity must be positive (product_id={ln.product_id})")
            product = get_product(tx, ln.product_id)
            quantities[product.id] = quantities.get(product.id, 0) + ln.quantity
            costs.setdefault(product.id, Decimal(ln.unit_cost if ln.unit_cost is not None else product.price))
            if ln.backorder_id is not None:
                backorder_ids[product.id].append(ln.backorder_id)

        total = Decimal("0")
        for product_id, quantity in quantities.items():
            total += costs[product_id] * quantity
            po.lines.append(
                PurchaseOrderLine(product_id=product_id, quantity=quantity, unit_cost=costs[product_id])
            )

        for product_id, ids in backorder_ids.items():
            linked = 0
            # un même backorder cité sur deux lignes ne compte qu'une fois
            for backorder_id in dict.fromkeys(ids):
                bo = backorders.get_backorder(tx, backorder_id)
                if bo.product_id != product_id:
                    raise InvariantViolation(
                        f"Backorder {bo.id} is for product {bo.product_id}, not {product_id}"
                    )
                backorders.link_to_purchase_order(tx, bo.id, po.id)
                linked += bo.quantity
            if linked > quantities[product_id]:
                raise InvariantViolation(
                    f"Purchase quantity {quantities[product_id]} for product {product_id} "
                    f"does not cover backordered quantity {linked}"
                )

        po.total = total
        tx.flush()
        return int(po.id), po.po_number, supplier.name

    po_id, po_number, supplier_name = run_in_transaction(db, _work)
    logger.info("purchase_order.created", po_id=po_id, po_number=po_number, supplier_id=supplier_id)

    notify(
        db,
        title="New Purchase Order",
        description=f"PO for {supplier_name} has been created.",
        details=f"A new purchase order ({po_number}) has been created for {supplier_name}.",
        href="/purchase-orders",
    )
    return po_id


def _unlink_pending_backorders(tx: Session, po_id: int) -> int:
    """Les backorders Pending du PO redeviennent commandables."""
    linked = backorders.find_pending_for_purchase_order(tx, po_id)
    for bo in linked:
        bo.purchase_order_id = None
    tx.flush()
    return len(linked)


def _receive(tx: Session, po_id: int) -> tuple[str, list[int]] | None:
    po = tx.execute(
        select(PurchaseOrder).where(PurchaseOrder.id == po_id).with_for_update()
    ).scalar_one_or_none()
    if not po:
        raise NotFound("Purchase order", po_id)

    # idempotent : un PO déjà reçu ne se réceptionne jamais deux fois
    if po.status == POStatus.received:
        return None
    if po.status == POStatus.cancelled:
        raise InvariantViolation(f"Purchase order {po.po_number} is cancelled")

    po.status = POStatus.received
    po.received_date = utcnow()

    pending: dict[int, list[Backorder]] = defaultdict(list)
    for bo in backorders.find_pending_for_purchase_order(tx, po.id):
        pending[bo.product_id].append(bo)

    affected: dict[int, Order] = {}
    for line in po.lines:
        apply_delta(tx, line.product_id, line.quantity, f"Received PO #{po.po_number}")

        for bo in pending.get(line.product_id, []):
            order = tx.get(Order, bo.order_id)
            if order is None or order.status == OrderStatus.cancelled:
                logger.info("backorder.skipped_cancelled_order", backorder_id=bo.id, order_id=bo.order_id)
                continue

            issuance = issue_stock(
                tx,
                client_id=bo.client_id,
                lines=[(bo.product_id, bo.quantity)],
                issued_by=AUTO_ISSUER,
                order_id=bo.order_id,
                remarks=f"Backorder fulfillment from PO #{po.po_number}",
            )
            backorders.resolve(tx, bo.id, issuance_id=issuance.id)
            apply_issued_quantities(order, {bo.product_id: bo.quantity})
            affected[order.id] = order

    tx.flush()
    for order in affected.values():
        refresh_order_status(tx, order)

    return po.po_number, sorted(affected)


def receive_purchase_order(db: Session, po_id: int) -> bool:
    """Retourne False si le PO était déjà reçu (no-op)."""
    outcome = run_in_transaction(db, lambda tx: _receive(tx, po_id))
    if outcome is None:
        logger.warning("purchase_order.already_received", po_id=po_id)
        return False

    po_number, order_ids = outcome
    logger.info("purchase_order.received", po_id=po_id, po_number=po_number, orders=order_ids)

    notify(
        db,
        title="PO Received",
        description=f"PO #{po_number} has been received.",
        details=(
            f"Items from Purchase Order #{po_number} are now in stock. "
            f"{len(order_ids)} order(s) had backorders fulfilled."
        ),
        href="/inventory",
    )
    check_and_update_awaiting_orders(db)
    return True


def update_purchase_order_status(db: Session, po_id: int, status: POStatus | str) -> None:
    """Received déclenche la réconciliation complète ; un PO reçu est terminal."""
    status = POStatus(status)
    if status == POStatus.received:
        receive_purchase_order(db, po_id)
        return

    def _work(tx: Session) -> POStatus | None:
        po = get_purchase_order(tx, po_id)
        if po.status in backorders.CLOSED_PO_STATUSES:
            return po.status

        if status == POStatus.cancelled:
            _unlink_pending_backorders(tx, po.id)

        po.status = status
        return None

    terminal = run_in_transaction(db, _work)
    if terminal is not None:
        logger.warning("purchase_order.terminal", po_id=po_id, status=terminal.value, requested=status.value)
        return
    logger.info("purchase_order.status_updated", po_id=po_id, status=status.value)


def delete_purchase_order(db: Session, po_id: int) -> None:
    """Suppression physique, Pending uniquement : rien n'a encore été expédié ni reçu."""

    def _work(tx: Session) -> tuple[str, int]:
        po = get_purchase_order(tx, po_id)
        if po.status != POStatus.pending:
            raise InvariantViolation(
                f"Purchase order {po.po_number} is {po.status.value} and cannot be deleted"
            )
        unlinked = _unlink_pending_backorders(tx, po.id)
        number = po.po_number
        tx.delete(po)
        return number, unlinked

    po_number, unlinked = run_in_transaction(db, _work)
    logger.info("purchase_order.deleted", po_id=po_id, po_number=po_number, unlinked_backorders=unlinked)
