from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, require_roles
from coldstore.app.db.models.core_types import MANAGER_ROLES, TemperatureZone
from coldstore.app.db.models.models_v1 import (
    InboundOrderItem,
    InventoryLot,
    OutboundOrderItem,
    Product,
)
from coldstore.app.schemas.product import ProductCreate, ProductStockRead
from coldstore.services.inventory import stock_levels

router = APIRouter(prefix="/products")


def _with_stock(p: Product, levels: dict[int, tuple[int, int]]) -> ProductStockRead:
    on_hand, reserved = levels.get(p.id, (0, 0))
    out = ProductStockRead.model_validate(p)
    out.on_hand = on_hand
    out.reserved = reserved
    out.available = on_hand - reserved
    return out


def _get_product(db: Session, product_id: int) -> Product:
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")
    return p


def _check_unique(db: Session, payload: ProductCreate, exclude_id: int | None = None) -> None:
    stmt = select(Product.id).where(Product.sku == payload.sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if db.execute(stmt).first():
        raise HTTPException(status_code=409, detail="SKU already exists")

    if payload.barcode:
        stmt = select(Product.id).where(Product.barcode == payload.barcode)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        if db.execute(stmt).first():
            raise HTTPException(status_code=409, detail="Barcode already exists")


@router.get("", response_model=list[ProductStockRead])
def list_products(
    active: bool | None = None,
    temperature_zone: TemperatureZone | None = None,
    category: str | None = None,
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    stmt = select(Product).order_by(Product.sku)
    if active is not None:
        stmt = stmt.where(Product.active.is_(active))
    if temperature_zone is not None:
        stmt = stmt.where(Product.temperature_zone == temperature_zone)
    if category:
        stmt = stmt.where(Product.category == category)

    rows = db.execute(stmt).scalars().all()
    levels = stock_levels(db, [p.id for p in rows])
    return [_with_stock(p, levels) for p in rows]


@router.get("/{product_id}", response_model=ProductStockRead)
def get_product(product_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    p = _get_product(db, product_id)
    return _with_stock(p, stock_levels(db, [p.id]))


@router.post("", response_model=ProductStockRead, status_code=201)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    _check_unique(db, payload)

    p = Product(**payload.model_dump())
    db.add(p)
    db.commit()
    db.refresh(p)
    return _with_stock(p, {})


@router.patch("/{product_id}", response_model=ProductStockRead)
def update_product(
    product_id: int,
    payload: ProductCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    p = _get_product(db, product_id)
    _check_unique(db, payload, exclude_id=p.id)

    for field, value in payload.model_dump().items():
        setattr(p, field, value)
    db.commit()
    db.refresh(p)
    return _with_stock(p, stock_levels(db, [p.id]))


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    p = _get_product(db, product_id)

    if db.execute(select(InventoryLot.id).where(InventoryLot.product_id == p.id).limit(1)).first():
        raise HTTPException(status_code=400, detail="Cannot delete product with inventory")
    for model in (InboundOrderItem, OutboundOrderItem):
        if db.execute(select(model.id).where(model.product_id == p.id).limit(1)).first():
            raise HTTPException(status_code=400, detail="Cannot delete product referenced by orders")

    db.delete(p)
    db.commit()
