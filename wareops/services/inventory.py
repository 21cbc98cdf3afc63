from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from wareops.app.db.base import utcnow
from wareops.app.db.models.models_v1 import Product, StockHistory
from wareops.services.errors import InsufficientStock, NotFound
from wareops.services.notifications import notify_low_stock
from wareops.services.reconciliation import check_and_update_awaiting_orders
from wareops.services.transactions import run_in_transaction

logger = structlog.get_logger()


def get_product(db: Session, product_id: int, *, for_update: bool = False) -> Product:
    stmt = select(Product).where(Product.id == product_id)
    if for_update:
        stmt = stmt.with_for_update()
    product = db.execute(stmt).scalar_one_or_none()
    if not product:
        raise NotFound("Product", product_id)
    return product


def current_stock(db: Session, product_id: int) -> int:
    return int(get_product(db, product_id).stock)


def apply_delta(
    db: Session,
    product_id: int,
    delta: int,
    reason: str,
) -> int:
    """
    Seul point d'écriture du stock produit.

    Règles :
    - s'exécute dans la transaction de l'appelant (pas de commit ici)
    - une ligne StockHistory par mutation
    - le stock ne devient JAMAIS négatif -> InsufficientStock

    Retourne le nouveau niveau de stock.
    """
    product = get_product(db, product_id, for_update=True)

    new_stock = product.stock + delta
    if new_stock < 0:
        raise InsufficientStock(product.name, available=product.stock, requested=-delta)

    now = utcnow()
    product.stock = new_stock
    product.last_updated = now
    db.add(
        StockHistory(
            product_id=product.id,
            entry_date=now.date(),
            stock=new_stock,
            delta=delta,
            reason=reason,
            timestamp=now,
        )
    )
    db.flush()

    logger.debug("stock.delta_applied", product_id=product.id, delta=delta, stock=new_stock, reason=reason)
    return new_stock


def adjust_stock(db: Session, product_id: int, delta: int, reason: str) -> int:
    """Ajustement manuel, dans sa propre transaction."""
    new_stock = run_in_transaction(db, lambda tx: apply_delta(tx, product_id, delta, reason))
    logger.info("stock.adjusted", product_id=product_id, delta=delta, stock=new_stock)

    notify_low_stock(db, [product_id])
    if delta > 0:
        check_and_update_awaiting_orders(db)
    return new_stock


def stock_history(db: Session, product_id: int) -> list[StockHistory]:
    get_product(db, product_id)
    return list(
        db.execute(
            select(StockHistory)
            .where(StockHistory.product_id == product_id)
            .order_by(StockHistory.timestamp.asc(), StockHistory.id.asc())
        )
        .scalars()
        .all()
    )


def low_stock_products(db: Session) -> list[Product]:
    return list(
        db.execute(
            select(Product)
            .where(Product.stock <= Product.reorder_limit)
            .order_by(Product.sku)
        )
        .scalars()
        .all()
    )
