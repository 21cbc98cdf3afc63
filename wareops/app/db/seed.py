from __future__ import annotations

from decimal import Decimal

import structlog
from sqlalchemy import select

from wareops.app.core.logging_config import configure_logging
from wareops.app.db.session import SessionLocal
from wareops.app.db.models.models_v1 import Client, Product, Supplier
from wareops.services.inventory import adjust_stock

logger = structlog.get_logger()

DEMO_PRODUCTS = [
    # sku, nom, prix, stock initial, seuil
    ("CEM-25KG", "Cement 25kg", Decimal("9.50"), 120, 20),
    ("REB-12MM", "Rebar 12mm x 6m", Decimal("14.00"), 40, 10),
    ("PLY-18MM", "Plywood 18mm", Decimal("32.00"), 0, 5),
]


def run_seed():
    db = SessionLocal()
    try:
        # 1) Client de démo
        client = db.scalar(select(Client).where(Client.name == "DEMO CLIENT"))
        if not client:
            client = Client(name="DEMO CLIENT", project_name="Warehouse extension")
            db.add(client)
            db.commit()

        # 2) Fournisseur
        supplier = db.scalar(select(Supplier).where(Supplier.name == "DEMO SUPPLIER"))
        if not supplier:
            supplier = Supplier(name="DEMO SUPPLIER", country="PF", lead_time_days=7)
            db.add(supplier)
            db.commit()

        # 3) Produits, stock initial via le ledger
        for sku, name, price, initial, limit in DEMO_PRODUCTS:
            if db.scalar(select(Product).where(Product.sku == sku)):
                continue
            p = Product(sku=sku, name=name, price=price, stock=0, reorder_limit=limit, supplier_id=supplier.id)
            db.add(p)
            db.commit()
            if initial:
                adjust_stock(db, p.id, initial, "Initial stock")

        logger.info("seed.done", client_id=client.id, supplier_id=supplier.id, products=len(DEMO_PRODUCTS))
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    run_seed()
