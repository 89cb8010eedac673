from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db
from coldstore.app.db.models.core_types import MovementType
from coldstore.app.db.models.models_v1 import StockMovement
from coldstore.app.schemas.inventory import MovementRead

router = APIRouter(prefix="/stock-movements")


@router.get("", response_model=list[MovementRead])
def list_stock_movements(
    product_id: int | None = None,
    type: MovementType | None = None,
    reference_number: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    # plus récent d'abord
    stmt = select(StockMovement).order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    if product_id is not None:
        stmt = stmt.where(StockMovement.product_id == product_id)
    if type is not None:
        stmt = stmt.where(StockMovement.type == type)
    if reference_number:
        stmt = stmt.where(StockMovement.reference_number == reference_number)
    return db.execute(stmt.limit(limit)).scalars().all()
