"""
Données de référence : clients et fournisseurs.

Lecture seule pour le noyau fulfillment (orders, issuance, procurement
les résolvent par id) ; seules les créations passent par ici.
"""

from __future__ import annotations

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wareops.app.db.models.models_v1 import Client, Order, Product, PurchaseOrder, Supplier
from wareops.services.errors import InvariantViolation, NotFound
from wareops.services.transactions import run_in_transaction

logger = structlog.get_logger()


# ---------- CLIENTS ----------
def get_client(db: Session, client_id: int) -> Client:
    client = db.get(Client, client_id)
    if not client:
        raise NotFound("Client", client_id)
    return client


def list_clients(db: Session) -> list[Client]:
    return list(db.execute(select(Client).order_by(Client.name, Client.id)).scalars().all())


def create_client(
    db: Session,
    *,
    name: str,
    project_name: str | None = None,
    address: str | None = None,
) -> int:
    def _work(tx: Session) -> int:
        client = Client(name=name.strip(), project_name=project_name, address=address)
        tx.add(client)
        tx.flush()
        return int(client.id)

    client_id = run_in_transaction(db, _work)
    logger.info("client.created", client_id=client_id)
    return client_id


def client_order_count(db: Session, client_id: int) -> int:
    get_client(db, client_id)
    return int(db.scalar(select(func.count()).select_from(Order).where(Order.client_id == client_id)))


# ---------- SUPPLIERS ----------
def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if not supplier:
        raise NotFound("Supplier", supplier_id)
    return supplier


def list_suppliers(db: Session) -> list[Supplier]:
    return list(db.execute(select(Supplier).order_by(Supplier.name)).scalars().all())


def create_supplier(
    db: Session,
    *,
    name: str,
    country: str | None = None,
    lead_time_days: int = 14,
) -> int:
    """Le nom fournisseur est unique (insensible à la casse)."""
    name = name.strip()

    def _work(tx: Session) -> int:
        exists = tx.execute(
            select(Supplier.id).where(func.lower(Supplier.name) == name.lower())
        ).first()
        if exists:
            raise InvariantViolation(f"Supplier {name} already exists")

        supplier = Supplier(
            name=name,
            country=country.upper() if country else None,
            lead_time_days=lead_time_days,
        )
        tx.add(supplier)
        tx.flush()
        return int(supplier.id)

    supplier_id = run_in_transaction(db, _work)
    logger.info("supplier.created", supplier_id=supplier_id, name=name)
    return supplier_id


def supplier_activity(db: Session, supplier_id: int) -> dict[str, int]:
    """Produits rattachés et PO passés, pour la fiche fournisseur."""
    get_supplier(db, supplier_id)
    products = db.scalar(select(func.count()).select_from(Product).where(Product.supplier_id == supplier_id))
    purchase_orders = db.scalar(
        select(func.count()).select_from(PurchaseOrder).where(PurchaseOrder.supplier_id == supplier_id)
    )
    return {"products": int(products), "purchase_orders": int(purchase_orders)}
