from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, get_today
from coldstore.app.core.config import settings
from coldstore.app.db.models.core_types import InboundStatus, OutboundStatus
from coldstore.app.db.models.models_v1 import (
    Customer,
    InboundOrder,
    OutboundOrder,
    Product,
    StorageLocation,
    Supplier,
)
from coldstore.services.inventory import expiring_lots, low_stock_products

router = APIRouter(prefix="/dashboard")


def _count(db: Session, stmt) -> int:
    return int(db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one())


@router.get("")
def dashboard(
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    _user=Depends(get_current_user),
):
    """Compteurs de la page d'accueil."""
    return {
        "active_products": _count(db, select(Product.id).where(Product.active.is_(True))),
        "active_suppliers": _count(db, select(Supplier.id).where(Supplier.active.is_(True))),
        "active_customers": _count(db, select(Customer.id).where(Customer.active.is_(True))),
        "active_locations": _count(db, select(StorageLocation.id).where(StorageLocation.active.is_(True))),
        "pending_inbound": _count(
            db,
            select(InboundOrder.id).where(
                InboundOrder.status.in_([InboundStatus.pending, InboundStatus.receiving])
            ),
        ),
        "pending_outbound": _count(
            db,
            select(OutboundOrder.id).where(
                OutboundOrder.status.in_([OutboundStatus.pending, OutboundStatus.picking, OutboundStatus.packed])
            ),
        ),
        "expiring_lots": len(
            expiring_lots(db, today=today, days=settings.expiry_warning_days, include_expired=False)
        ),
        "expired_lots": len(
            [l for l in expiring_lots(db, today=today, days=0) if l.expiry_date < today]
        ),
        "low_stock_products": len(low_stock_products(db)),
    }
