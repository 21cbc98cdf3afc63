"""
Fil de notifications (best-effort).

Appelé APRÈS le commit de la transaction principale : un échec ici est
journalisé puis ignoré, il ne remet jamais en cause l'état d'inventaire.
"""

from __future__ import annotations

from datetime import timedelta

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wareops.app.db.base import utcnow
from wareops.app.db.models.models_v1 import Notification, Product

logger = structlog.get_logger()

LOW_STOCK_DEDUP_WINDOW = timedelta(minutes=5)


def notify(
    db: Session,
    *,
    title: str,
    description: str,
    details: str | None = None,
    href: str | None = None,
) -> None:
    try:
        db.add(
            Notification(
                title=title,
                description=description,
                details=details,
                href=href,
                read=False,
            )
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("notification.failed", title=title, error=str(exc))


def notify_low_stock(db: Session, product_ids) -> None:
    """
    Alerte "Low Stock" si 0 < stock <= reorder_limit.
    Pas de doublon si une alerte identique a moins de 5 minutes.
    """
    try:
        products = (
            db.execute(select(Product).where(Product.id.in_(sorted(set(product_ids)))))
            .scalars()
            .all()
        )
        since = utcnow() - LOW_STOCK_DEDUP_WINDOW
        for p in products:
            if not (0 < p.stock <= p.reorder_limit):
                continue

            title = f"Low Stock Alert: {p.name}"
            recent = db.execute(
                select(Notification.id)
                .where(Notification.title == title)
                .where(Notification.created_at > since)
            ).first()
            if recent:
                continue

            notify(
                db,
                title=title,
                description=f"{p.name} is low stock.",
                details=(
                    f'Product "{p.name}" (SKU: {p.sku}) has a stock level of {p.stock}, '
                    f"which is at or below the reorder limit of {p.reorder_limit}. Please reorder soon."
                ),
                href="/inventory",
            )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("notification.low_stock_failed", error=str(exc))


def list_notifications(db: Session, *, unread_only: bool = False, limit: int = 50) -> list[Notification]:
    stmt = select(Notification).order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    return list(db.execute(stmt).scalars().all())


def mark_as_read(db: Session, notification_id: int | None = None) -> int:
    """Marque une notification (ou toutes si id=None) comme lue. Retourne le nombre modifié."""
    stmt = update(Notification).where(Notification.read.is_(False)).values(read=True)
    if notification_id is not None:
        stmt = stmt.where(Notification.id == notification_id)
    result = db.execute(stmt)
    db.commit()
    return result.rowcount
