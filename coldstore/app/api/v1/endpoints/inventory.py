from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, get_today, require_roles, service_errors
from coldstore.app.core.config import settings
from coldstore.app.db.models.core_types import MANAGER_ROLES
from coldstore.app.db.models.models_v1 import InventoryLot, StockMovement, User
from coldstore.app.schemas.inventory import (
    AdjustCreate,
    DisposeCreate,
    LotRead,
    LowStockRead,
    MovementRead,
    StockSummaryRead,
    TransferCreate,
)
from coldstore.app.schemas.product import ProductBrief
from coldstore.services import inventory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory")


# ---------- Helpers ----------
def _clean_key(idempotency_key: str | None) -> str | None:
    if idempotency_key is None or not idempotency_key.strip():
        return None
    return idempotency_key.strip()


def _replay(db: Session, idem: str | None) -> StockMovement | None:
    if not idem:
        return None
    existing = inventory.find_movement_by_key(db, idem)
    if existing:
        logger.info("idempotent replay of movement %s (key=%s)", existing.id, idem)
    return existing


# ---------- Read ----------
@router.get("", response_model=list[LotRead])
def list_lots(
    product_id: int | None = None,
    location_id: int | None = None,
    include_empty: bool = False,
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    stmt = select(InventoryLot).order_by(InventoryLot.expiry_date, InventoryLot.id)
    if product_id is not None:
        stmt = stmt.where(InventoryLot.product_id == product_id)
    if location_id is not None:
        stmt = stmt.where(InventoryLot.location_id == location_id)
    if not include_empty:
        stmt = stmt.where(InventoryLot.quantity > 0)
    return db.execute(stmt).scalars().all()


@router.get("/summary/{product_id}", response_model=StockSummaryRead)
def get_stock_summary(
    product_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    _user=Depends(get_current_user),
):
    with service_errors(db):
        return inventory.stock_summary(
            db, product_id, today=today, warning_days=settings.expiry_warning_days
        )


@router.get("/expiring", response_model=list[LotRead])
def list_expiring_lots(
    days: int = Query(default=settings.expiry_warning_days, ge=0, le=365),
    include_expired: bool = True,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    _user=Depends(get_current_user),
):
    return inventory.expiring_lots(db, today=today, days=days, include_expired=include_expired)


@router.get("/low-stock", response_model=list[LowStockRead])
def list_low_stock(db: Session = Depends(get_db), _user=Depends(get_current_user)):
    return [
        LowStockRead(
            product=ProductBrief.model_validate(p),
            on_hand=qty,
            min_stock_level=p.min_stock_level,
        )
        for p, qty in inventory.low_stock_products(db)
    ]


# ---------- Lot operations ----------
@router.post("/{lot_id}/adjust", response_model=MovementRead)
def adjust_lot(
    lot_id: int,
    payload: AdjustCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    idem = _clean_key(idempotency_key)
    existing = _replay(db, idem)
    if existing:
        return existing

    with service_errors(db):
        lot = inventory.lock_lot(db, lot_id)
        mv = inventory.adjust_lot(
            db,
            lot,
            quantity_change=payload.quantity_change,
            reason=payload.reason,
            user_id=user.id,
            idempotency_key=idem,
        )
    db.commit()
    return mv


@router.post("/{lot_id}/transfer", response_model=MovementRead)
def transfer_lot(
    lot_id: int,
    payload: TransferCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    idem = _clean_key(idempotency_key)
    existing = _replay(db, idem)
    if existing:
        return existing

    with service_errors(db):
        lot = inventory.lock_lot(db, lot_id)
        mv = inventory.transfer_lot(
            db,
            lot,
            to_location_id=payload.to_location_id,
            quantity=payload.quantity,
            reason=payload.reason,
            user_id=user.id,
            idempotency_key=idem,
        )
    db.commit()
    return mv


@router.post("/{lot_id}/dispose", response_model=MovementRead)
def dispose_lot(
    lot_id: int,
    payload: DisposeCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    idem = _clean_key(idempotency_key)
    existing = _replay(db, idem)
    if existing:
        return existing

    with service_errors(db):
        lot = inventory.lock_lot(db, lot_id)
        mv = inventory.dispose_lot(
            db,
            lot,
            quantity=payload.quantity,
            reason=payload.reason,
            user_id=user.id,
            idempotency_key=idem,
        )
    db.commit()
    return mv
