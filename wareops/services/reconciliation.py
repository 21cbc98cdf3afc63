"""
Réconciliation des commandes bloquées.

- check_and_update_awaiting_orders : balayage complet des commandes
  "Awaiting Purchase" / "Partially Fulfilled" contre le stock courant.
- apply_issued_quantities / revert_issued_quantities / refresh_order_status :
  cascade de statut commande après une issuance (ou sa suppression).

Le balayage ne déplace AUCUN stock et ne crée aucune issuance : il ne fait
que remonter le statut des commandes désormais couvrables.
"""

from __future__ import annotations

from collections import defaultdict

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from wareops.app.db.models.models_v1 import Issuance, Order, Product
from wareops.app.db.models.core_types import OrderLineStatus, OrderStatus
from wareops.services import backorders
from wareops.services.notifications import notify
from wareops.services.transactions import run_in_transaction

logger = structlog.get_logger()

SWEEP_STATUSES = (OrderStatus.awaiting_purchase, OrderStatus.partially_fulfilled)

# statuts posés par la logistique : la cascade n'y touche pas
EXTERNAL_STATUSES = (OrderStatus.shipped, OrderStatus.cancelled)

SWEEP_UPGRADES = {
    OrderStatus.awaiting_purchase: OrderStatus.ready_for_issuance,
    OrderStatus.partially_fulfilled: OrderStatus.fulfilled,
}


# ---------- CASCADE ----------
def apply_issued_quantities(order: Order, issued: dict[int, int]) -> None:
    """Ventile des quantités émises (product_id -> qty) sur les lignes non soldées."""
    remaining = dict(issued)
    for line in order.lines:
        qty = remaining.get(line.product_id, 0)
        if qty <= 0 or line.outstanding <= 0:
            continue
        take = min(qty, line.outstanding)
        line.qty_issued += take
        remaining[line.product_id] = qty - take
        if line.outstanding == 0:
            line.status = OrderLineStatus.fulfilled


def revert_issued_quantities(order: Order, issuance: Issuance) -> None:
    """Inverse de apply_issued_quantities, pour la suppression d'une issuance."""
    for il in issuance.lines:
        remaining = il.quantity
        for line in reversed(order.lines):
            if remaining <= 0:
                break
            if line.product_id != il.product_id or line.qty_issued <= 0:
                continue
            take = min(remaining, line.qty_issued)
            line.qty_issued -= take
            line.status = OrderLineStatus.awaiting_purchase
            remaining -= take


def refresh_order_status(db: Session, order: Order) -> OrderStatus:
    """
    Statut agrégé après une issuance ultérieure à la création :
    - plus rien à émettre et aucun backorder Pending -> Fulfilled
    - quelque chose déjà émis                         -> Partially Fulfilled
    - rien d'émis                                     -> Awaiting Purchase
    """
    if order.status in EXTERNAL_STATUSES:
        return order.status

    pending = backorders.find_pending_for_order(db, order.id)
    if not pending and all(line.outstanding == 0 for line in order.lines):
        order.status = OrderStatus.fulfilled
    elif any(line.qty_issued > 0 for line in order.lines):
        order.status = OrderStatus.partially_fulfilled
    else:
        order.status = OrderStatus.awaiting_purchase
    return order.status


# ---------- SWEEP ----------
def _sweep(db: Session) -> list[tuple[int, OrderStatus]]:
    orders = (
        db.execute(
            select(Order)
            .where(Order.status.in_(SWEEP_STATUSES))
            .order_by(Order.date.asc(), Order.id.asc())
        )
        .scalars()
        .all()
    )
    if not orders:
        return []

    # lecture groupée des produits, mémoïsée pour tout le balayage
    product_ids = {line.product_id for order in orders for line in order.lines}
    stock_by_product = {
        pid: stock
        for pid, stock in db.execute(
            select(Product.id, Product.stock).where(Product.id.in_(sorted(product_ids)))
        ).all()
    }

    upgraded: list[tuple[int, OrderStatus]] = []
    for order in orders:
        required: dict[int, int] = defaultdict(int)
        for line in order.lines:
            if line.outstanding > 0:
                required[line.product_id] += line.outstanding

        covered = all(
            stock_by_product.get(pid) is not None and stock_by_product[pid] >= qty
            for pid, qty in required.items()
        )
        if not covered:
            continue

        for line in order.lines:
            if line.outstanding > 0:
                line.status = OrderLineStatus.ready_for_issuance

        previous = order.status
        order.status = SWEEP_UPGRADES[previous]
        upgraded.append((int(order.id), order.status))
        logger.info("order.sweep_upgraded", order_id=order.id, previous=previous.value, status=order.status.value)

    return upgraded


def check_and_update_awaiting_orders(db: Session) -> list[int]:
    """
    Balayage complet (O(commandes x lignes)) ; tous les changements de statut
    sont commités ensemble. Retourne les ids des commandes mises à jour.
    """
    upgraded = run_in_transaction(db, _sweep)

    for order_id, status in upgraded:
        if status == OrderStatus.ready_for_issuance:
            notify(
                db,
                title="Order Ready",
                description=f"Order {order_id} is ready for issuance.",
                details=f"All items for order {order_id} are in stock and are ready to be issued.",
                href="/issuance",
            )
        else:
            notify(
                db,
                title="Order Fulfilled",
                description=f"Order {order_id} can now be completed.",
                details=f"Remaining items for order {order_id} are now covered by stock.",
                href="/orders",
            )

    return [order_id for order_id, _ in upgraded]
