from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.app.db.models.models_v1 import Product, Supplier
from wareops.app.schemas.product import ProductRead, StockHistoryRead
from wareops.services import inventory

router = APIRouter(prefix="/products")


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    initial_stock: int = Field(default=0, ge=0)
    reorder_limit: int = Field(default=0, ge=0)
    max_stock_level: int = Field(default=0, ge=0)
    location: str | None = Field(default=None, max_length=128)
    supplier_id: int | None = None


class StockAdjust(BaseModel):
    delta: int
    reason: str = Field(min_length=1, max_length=255)


@router.get("", response_model=list[ProductRead])
def list_products(db: Session = Depends(get_db)):
    return db.execute(select(Product).order_by(Product.sku)).scalars().all()


@router.get("/low-stock", response_model=list[ProductRead])
def list_low_stock(db: Session = Depends(get_db)):
    return inventory.low_stock_products(db)


@router.post("", status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    exists = db.execute(select(Product).where(Product.sku == payload.sku)).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="SKU already exists")
    if payload.supplier_id is not None and not db.get(Supplier, payload.supplier_id):
        raise HTTPException(status_code=400, detail="Invalid supplier_id")

    p = Product(
        sku=payload.sku,
        name=payload.name,
        price=payload.price,
        stock=0,
        reorder_limit=payload.reorder_limit,
        max_stock_level=payload.max_stock_level,
        location=payload.location,
        supplier_id=payload.supplier_id,
    )
    db.add(p)
    db.commit()
    db.refresh(p)

    # le stock initial passe par le ledger (historique "Initial stock")
    if payload.initial_stock:
        with service_errors():
            inventory.adjust_stock(db, p.id, payload.initial_stock, "Initial stock")

    return {"id": p.id, "sku": p.sku, "name": p.name}


@router.post("/{product_id}/adjust")
def adjust_product_stock(product_id: int, payload: StockAdjust, db: Session = Depends(get_db)):
    if payload.delta == 0:
        raise HTTPException(status_code=400, detail="delta must be non-zero")
    with service_errors():
        new_stock = inventory.adjust_stock(db, product_id, payload.delta, payload.reason)
    return {"product_id": product_id, "stock": new_stock}


@router.get("/{product_id}/history", response_model=list[StockHistoryRead])
def get_product_history(product_id: int, db: Session = Depends(get_db)):
    with service_errors():
        return inventory.stock_history(db, product_id)
