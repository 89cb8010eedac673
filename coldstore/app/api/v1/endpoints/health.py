from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_db
from coldstore.app.db.models.models_v1 import (
    Customer,
    InboundOrder,
    InventoryLot,
    OutboundOrder,
    Product,
    StockMovement,
    StorageLocation,
    Supplier,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health")

COUNTED = {
    "users": User,
    "products": Product,
    "suppliers": Supplier,
    "customers": Customer,
    "locations": StorageLocation,
    "inventory": InventoryLot,
    "inbound_orders": InboundOrder,
    "outbound_orders": OutboundOrder,
    "stock_movements": StockMovement,
}


@router.get("")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        counts = {
            name: int(db.execute(select(func.count()).select_from(model)).scalar_one())
            for name, model in COUNTED.items()
        }
    except SQLAlchemyError as exc:
        logger.error("health check failed: %s", exc)
        return JSONResponse(status_code=503, content={"status": "error", "database": "unreachable"})

    return {"status": "ok", "database": "connected", "counts": counts}
