"""
Issuance engine.

Une issuance (sortie de marchandise) n'existe JAMAIS sans la décrémentation
de stock correspondante : les deux sont écrites dans la même transaction.

- issue_stock      : forme composable, tourne dans la transaction de l'appelant
- create_issuance  : ouvre sa propre transaction
- delete_issuance  : transaction compensatoire (restaure le stock)
"""

from __future__ import annotations

import os
import uuid
from datetime import datetime
from typing import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from wareops.app.db.base import utcnow
from wareops.app.db.models.models_v1 import Backorder, Client, Issuance, IssuanceLine, Order
from wareops.services import backorders
from wareops.services.errors import InsufficientStock, InvariantViolation, NotFound
from wareops.services.inventory import apply_delta, get_product
from wareops.services.notifications import notify_low_stock
from wareops.services.reconciliation import (
    apply_issued_quantities,
    check_and_update_awaiting_orders,
    refresh_order_status,
    revert_issued_quantities,
)
from wareops.services.transactions import run_in_transaction

logger = structlog.get_logger()

AUTO_ISSUER = os.getenv("WAREOPS_AUTO_ISSUER", "System (Auto)")


def make_issuance_number() -> str:
    return f"IS-{utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def merge_lines(lines: Iterable[tuple[int, int]]) -> dict[int, int]:
    """(product_id, qty) -> {product_id: qty total}, ordre d'apparition conservé."""
    merged: dict[int, int] = {}
    for product_id, quantity in lines:
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive (product_id={product_id})")
        merged[int(product_id)] = merged.get(int(product_id), 0) + int(quantity)
    return merged


def issue_stock(
    db: Session,
    *,
    client_id: int,
    lines: Iterable[tuple[int, int]],
    issued_by: str,
    order_id: int | None = None,
    received_by: str | None = None,
    remarks: str | None = None,
    date: datetime | None = None,
) -> Issuance:
    """
    Décrémente le stock de chaque ligne et écrit UNE issuance.
    Tout ou rien : la première ligne en rupture lève InsufficientStock et
    l'appelant annule la transaction entière.
    """
    merged = merge_lines(lines)
    if not merged:
        raise ValueError("An issuance needs at least one line")

    if not db.get(Client, client_id):
        raise NotFound("Client", client_id)

    issuance_number = make_issuance_number()

    for product_id, quantity in merged.items():
        product = get_product(db, product_id, for_update=True)
        if product.stock < quantity:
            raise InsufficientStock(product.name, available=product.stock, requested=quantity)
        apply_delta(db, product_id, -quantity, f"Issuance #{issuance_number}")

    issuance = Issuance(
        issuance_number=issuance_number,
        client_id=client_id,
        date=date or utcnow(),
        order_id=order_id,
        issued_by=issued_by,
        received_by=received_by,
        remarks=remarks,
        lines=[IssuanceLine(product_id=pid, quantity=qty) for pid, qty in merged.items()],
    )
    db.add(issuance)
    db.flush()

    logger.info(
        "issuance.issued",
        issuance_id=issuance.id,
        issuance_number=issuance_number,
        order_id=order_id,
        lines=len(merged),
    )
    return issuance


def create_issuance(
    db: Session,
    *,
    client_id: int,
    lines: Iterable[tuple[int, int]],
    issued_by: str,
    order_id: int | None = None,
    received_by: str | None = None,
    remarks: str | None = None,
) -> int:
    lines = list(lines)

    def _work(tx: Session) -> tuple[int, list[int]]:
        order = None
        if order_id is not None:
            order = tx.get(Order, order_id)
            if not order:
                raise NotFound("Order", order_id)
            if order.client_id != client_id:
                raise InvariantViolation(
                    f"Order {order_id} belongs to client {order.client_id}, not {client_id}"
                )

        issuance = issue_stock(
            tx,
            client_id=client_id,
            lines=lines,
            issued_by=issued_by,
            order_id=order_id,
            received_by=received_by,
            remarks=remarks,
        )
        product_ids = [il.product_id for il in issuance.lines]

        if order is not None:
            apply_issued_quantities(order, {il.product_id: il.quantity for il in issuance.lines})
            tx.flush()
            for bo in backorders.find_pending_for_order(tx, order.id):
                still_short = any(
                    line.outstanding > 0 for line in order.lines if line.product_id == bo.product_id
                )
                if not still_short:
                    backorders.resolve(tx, bo.id, issuance_id=issuance.id)
            refresh_order_status(tx, order)

        return int(issuance.id), product_ids

    issuance_id, product_ids = run_in_transaction(db, _work)
    notify_low_stock(db, product_ids)
    return issuance_id


def delete_issuance(db: Session, issuance_id: int) -> None:
    """
    Seule façon supportée d'annuler une issuance :
    restauration du stock + suppression du document, atomiquement,
    puis balayage des commandes en attente (le stock libéré peut les débloquer).
    """

    def _work(tx: Session) -> str:
        issuance = tx.execute(
            select(Issuance).where(Issuance.id == issuance_id).with_for_update()
        ).scalar_one_or_none()
        if not issuance:
            raise NotFound("Issuance", issuance_id)

        for il in issuance.lines:
            apply_delta(tx, il.product_id, il.quantity, f"Deletion of issuance #{issuance.issuance_number}")

        # backorders résolus par cette issuance -> de nouveau Pending
        resolved = tx.execute(select(Backorder).where(Backorder.issuance_id == issuance.id)).scalars().all()
        for bo in resolved:
            backorders.reopen(tx, bo)
        tx.flush()

        if issuance.order_id is not None:
            order = tx.get(Order, issuance.order_id)
            if order:
                revert_issued_quantities(order, issuance)
                tx.flush()
                refresh_order_status(tx, order)

        number = issuance.issuance_number
        tx.delete(issuance)
        return number

    number = run_in_transaction(db, _work)
    logger.info("issuance.deleted", issuance_id=issuance_id, issuance_number=number)

    check_and_update_awaiting_orders(db)


def get_issuance(db: Session, issuance_id: int) -> Issuance:
    issuance = db.get(Issuance, issuance_id)
    if not issuance:
        raise NotFound("Issuance", issuance_id)
    return issuance


def list_issuances(db: Session, *, order_id: int | None = None) -> list[Issuance]:
    stmt = select(Issuance).order_by(Issuance.date.desc(), Issuance.id.desc())
    if order_id is not None:
        stmt = stmt.where(Issuance.order_id == order_id)
    return list(db.execute(stmt).scalars().all())
