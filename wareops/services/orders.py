"""
Order orchestrator.

create_order, en UNE transaction :
    1. client et produits doivent exister (NotFound sinon)
    2. total = somme(prix courant x quantité demandée), figé dans la commande
    3. par ligne : disponible >= demandé -> émis en entier
                   0 < disponible < demandé -> émis en partie + backorder du reste
                   disponible == 0 -> backorder de la totalité
    4. une seule issuance pour tout ce qui est émissible
    5. statut : Ready for Issuance / Partially Fulfilled / Awaiting Purchase

Aucune substitution entre produits : chaque ligne ne consomme que son produit.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from wareops.app.db.base import utcnow
from wareops.app.db.models.models_v1 import Backorder, Client, Issuance, Order, OrderLine
from wareops.app.db.models.core_types import BackorderStatus, OrderLineStatus, OrderStatus
from wareops.services import backorders
from wareops.services.errors import InvariantViolation, NotFound
from wareops.services.inventory import get_product
from wareops.services.issuance import AUTO_ISSUER, issue_stock
from wareops.services.notifications import notify, notify_low_stock
from wareops.services.transactions import run_in_transaction

logger = structlog.get_logger()


@dataclass(frozen=True)
class OrderResult:
    order_id: int
    status: OrderStatus
    total: Decimal


def get_order(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if not order:
        raise NotFound("Order", order_id)
    return order


def list_orders(db: Session, *, status: OrderStatus | None = None) -> list[Order]:
    stmt = select(Order).order_by(Order.date.desc(), Order.id.desc())
    if status is not None:
        stmt = stmt.where(Order.status == status)
    return list(db.execute(stmt).scalars().all())


def create_order(
    db: Session,
    *,
    client_id: int,
    lines: Iterable[tuple[int, int]],
    reordered_from: int | None = None,
    purpose: str | None = None,
    issued_by: str = AUTO_ISSUER,
) -> OrderResult:
    lines = [(int(pid), int(qty)) for pid, qty in lines]
    if not lines:
        raise ValueError("An order needs at least one line")
    for pid, qty in lines:
        if qty <= 0:
            raise ValueError(f"Quantity must be positive (product_id={pid})")

    def _work(tx: Session) -> tuple[OrderResult, str, list[int]]:
        # ---------- LECTURES ----------
        client = tx.get(Client, client_id)
        if not client:
            raise NotFound("Client", client_id)

        order_date = utcnow()
        order = Order(
            client_id=client.id,
            date=order_date,
            status=OrderStatus.processing,
            total=Decimal("0"),
            purpose=purpose,
            reordered_from=reordered_from,
        )
        tx.add(order)
        tx.flush()  # order.id pour backorders + issuance

        # ---------- DÉCISION PAR LIGNE ----------
        total = Decimal("0")
        batch: dict[int, int] = {}
        shortfalls: dict[int, int] = defaultdict(int)
        # stock déjà engagé par les lignes précédentes du même produit
        committed: dict[int, int] = defaultdict(int)

        for product_id, quantity in lines:
            product = get_product(tx, product_id, for_update=True)
            price = Decimal(product.price)
            total += price * quantity

            available = max(product.stock - committed[product_id], 0)
            issuable = min(available, quantity)
            short = quantity - issuable
            committed[product_id] += issuable

            if issuable:
                batch[product_id] = batch.get(product_id, 0) + issuable
            if short:
                shortfalls[product_id] += short

            order.lines.append(
                OrderLine(
                    product_id=product_id,
                    quantity=quantity,
                    price=price,
                    qty_issued=issuable,
                    qty_backordered=short,
                    status=OrderLineStatus.issued if short == 0 else OrderLineStatus.awaiting_purchase,
                )
            )

        # ---------- ÉCRITURES ----------
        for product_id, short in shortfalls.items():
            backorders.record_shortfall(
                tx,
                order_id=order.id,
                client_id=client.id,
                product_id=product_id,
                quantity=short,
                date=order_date,
            )

        if batch:
            issue_stock(
                tx,
                client_id=client.id,
                lines=batch.items(),
                issued_by=issued_by,
                order_id=order.id,
                remarks=f"Order #{order.id}",
                date=order_date,
            )

        if not shortfalls:
            status = OrderStatus.ready_for_issuance
        elif not batch:
            status = OrderStatus.awaiting_purchase
        else:
            status = OrderStatus.partially_fulfilled

        order.status = status
        order.total = total
        tx.flush()

        return OrderResult(order_id=int(order.id), status=status, total=total), client.name, list(batch)

    result, client_name, issued_products = run_in_transaction(db, _work)
    logger.info(
        "order.created",
        order_id=result.order_id,
        status=result.status.value,
        total=str(result.total),
        reordered_from=reordered_from,
    )

    notify(
        db,
        title="New Order Created",
        description=f"Order for {client_name} has been placed.",
        details=f"A new order ({result.order_id}) for {client_name} has been created. Status: {result.status.value}.",
        href="/orders",
    )
    if issued_products:
        notify_low_stock(db, issued_products)
    return result


def reorder(db: Session, order_id: int) -> OrderResult:
    """Nouvelle commande à partir des lignes d'origine, aux prix et stocks COURANTS."""
    original = get_order(db, order_id)
    lines = [(line.product_id, line.quantity) for line in original.lines]
    return create_order(
        db,
        client_id=original.client_id,
        lines=lines,
        reordered_from=original.id,
        purpose=original.purpose,
    )


def update_order_status(db: Session, order_id: int, status: OrderStatus | str) -> OrderStatus:
    """
    Transition externe (logistique : Shipped, Cancelled, ...).
    Ne touche ni aux backorders ni aux issuances.
    """
    status = OrderStatus(status)
    if status == OrderStatus.processing:
        raise InvariantViolation("Processing is a transient status and cannot be set")

    def _work(tx: Session) -> OrderStatus:
        order = get_order(tx, order_id)
        previous = order.status
        if previous == OrderStatus.cancelled and status != OrderStatus.cancelled:
            raise InvariantViolation(f"Order {order_id} is cancelled")
        order.status = status
        return previous

    previous = run_in_transaction(db, _work)
    logger.info("order.status_updated", order_id=order_id, previous=previous.value, status=status.value)
    return previous


def delete_order(db: Session, order_id: int) -> None:
    """Suppression physique, refusée dès qu'une issuance dépend de la commande."""

    def _work(tx: Session) -> None:
        order = get_order(tx, order_id)

        issued = tx.execute(select(Issuance.id).where(Issuance.order_id == order.id).limit(1)).first()
        if issued:
            raise InvariantViolation(f"Order {order_id} has issuances and cannot be deleted")

        linked = tx.execute(select(Backorder).where(Backorder.order_id == order.id)).scalars().all()
        if any(bo.status == BackorderStatus.fulfilled for bo in linked):
            raise InvariantViolation(f"Order {order_id} has fulfilled backorders and cannot be deleted")

        for bo in linked:
            tx.delete(bo)
        tx.flush()
        tx.delete(order)

    run_in_transaction(db, _work)
    logger.info("order.deleted", order_id=order_id)
