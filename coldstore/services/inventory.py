from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from coldstore.app.db.models.models_v1 import (
    InventoryLot,
    OutboundOrder,
    OutboundOrderItem,
    Product,
    StockMovement,
    StorageLocation,
)
from coldstore.app.db.models.core_types import MovementType, RESERVING_STATUSES
from coldstore.services.errors import (
    InsufficientStockError,
    InvalidRequestError,
    NotFoundError,
    TemperatureZoneError,
)

logger = logging.getLogger(__name__)


@dataclass
class StockSummary:
    product_id: int
    on_hand: int
    reserved: int
    available: int
    expired: int
    near_expiry: int
    next_expiry_date: date | None


def get_on_hand(db: Session, product_id: int) -> int:
    return int(
        db.execute(
            select(func.coalesce(func.sum(InventoryLot.quantity), 0))
            .where(InventoryLot.product_id == product_id)
        ).scalar_one()
    )


def get_reserved(db: Session, product_id: int, *, exclude_order_id: int | None = None) -> int:
    """
    Quantity promised to outbound orders that have not left the warehouse yet.

    Règle métier :
        reserved = SUM(requested_quantity) on PENDING / PICKING / PACKED orders
    """
    stmt = (
        select(func.coalesce(func.sum(OutboundOrderItem.requested_quantity), 0))
        .join(OutboundOrder, OutboundOrder.id == OutboundOrderItem.outbound_order_id)
        .where(OutboundOrderItem.product_id == product_id)
        .where(OutboundOrder.status.in_(RESERVING_STATUSES))
    )
    if exclude_order_id is not None:
        stmt = stmt.where(OutboundOrder.id != exclude_order_id)
    return int(db.execute(stmt).scalar_one())


def get_available(db: Session, product_id: int) -> int:
    """available = on hand - reserved"""
    return get_on_hand(db, product_id) - get_reserved(db, product_id)


def stock_levels(db: Session, product_ids: Iterable[int]) -> dict[int, tuple[int, int]]:
    """
    (on_hand, reserved) for many products in two grouped queries.
    """
    product_ids = sorted({int(pid) for pid in product_ids if pid is not None})
    if not product_ids:
        return {}

    on_hand_rows = db.execute(
        select(
            InventoryLot.product_id,
            func.coalesce(func.sum(InventoryLot.quantity), 0).label("on_hand"),
        )
        .where(InventoryLot.product_id.in_(product_ids))
        .group_by(InventoryLot.product_id)
    ).all()

    reserved_rows = db.execute(
        select(
            OutboundOrderItem.product_id,
            func.coalesce(func.sum(OutboundOrderItem.requested_quantity), 0).label("reserved"),
        )
        .join(OutboundOrder, OutboundOrder.id == OutboundOrderItem.outbound_order_id)
        .where(OutboundOrder.status.in_(RESERVING_STATUSES))
        .where(OutboundOrderItem.product_id.in_(product_ids))
        .group_by(OutboundOrderItem.product_id)
    ).all()

    on_hand = {int(pid): int(qty) for pid, qty in on_hand_rows}
    reserved = {int(pid): int(qty) for pid, qty in reserved_rows}
    return {pid: (on_hand.get(pid, 0), reserved.get(pid, 0)) for pid in product_ids}


def stock_summary(db: Session, product_id: int, *, today: date, warning_days: int) -> StockSummary:
    if not db.get(Product, product_id):
        raise NotFoundError("Product not found")

    lots = (
        db.execute(
            select(InventoryLot)
            .where(InventoryLot.product_id == product_id)
            .where(InventoryLot.quantity > 0)
        )
        .scalars()
        .all()
    )

    threshold = today + timedelta(days=warning_days)
    expired = sum(l.quantity for l in lots if l.expiry_date < today)
    near_expiry = sum(l.quantity for l in lots if today <= l.expiry_date <= threshold)
    next_expiry = min((l.expiry_date for l in lots), default=None)

    on_hand = sum(l.quantity for l in lots)
    reserved = get_reserved(db, product_id)
    return StockSummary(
        product_id=product_id,
        on_hand=on_hand,
        reserved=reserved,
        available=on_hand - reserved,
        expired=expired,
        near_expiry=near_expiry,
        next_expiry_date=next_expiry,
    )


def expiring_lots(db: Session, *, today: date, days: int, include_expired: bool = True) -> list[InventoryLot]:
    stmt = (
        select(InventoryLot)
        .where(InventoryLot.quantity > 0)
        .where(InventoryLot.expiry_date <= today + timedelta(days=days))
        .order_by(InventoryLot.expiry_date, InventoryLot.id)
    )
    if not include_expired:
        stmt = stmt.where(InventoryLot.expiry_date >= today)
    return list(db.execute(stmt).scalars().all())


def low_stock_products(db: Session) -> list[tuple[Product, int]]:
    """Active products whose on-hand quantity is below their minimum level."""
    on_hand = (
        select(
            InventoryLot.product_id.label("product_id"),
            func.sum(InventoryLot.quantity).label("qty"),
        )
        .group_by(InventoryLot.product_id)
        .subquery()
    )
    qty = func.coalesce(on_hand.c.qty, 0)
    rows = db.execute(
        select(Product, qty)
        .outerjoin(on_hand, on_hand.c.product_id == Product.id)
        .where(Product.active.is_(True))
        .where(qty < Product.min_stock_level)
        .order_by(Product.sku)
    ).all()
    return [(p, int(q)) for p, q in rows]


# ---------- LOTS ----------
def check_temperature_zone(product: Product, location: StorageLocation) -> None:
    if product.temperature_zone != location.temperature_zone:
        raise TemperatureZoneError(
            f"Product temperature zone ({product.temperature_zone.value}) does not match "
            f"location {location.code} ({location.temperature_zone.value})"
        )


def get_or_create_lot(
    db: Session,
    *,
    product_id: int,
    location_id: int,
    batch_number: str,
    expiry_date: date,
    received_date: date,
    temperature_on_receipt: float | None = None,
) -> InventoryLot:
    lot = (
        db.execute(
            select(InventoryLot)
            .where(InventoryLot.product_id == product_id)
            .where(InventoryLot.location_id == location_id)
            .where(InventoryLot.batch_number == batch_number)
            .with_for_update()
        )
        .scalar_one_or_none()
    )
    if lot:
        return lot

    lot = InventoryLot(
        product_id=product_id,
        location_id=location_id,
        batch_number=batch_number,
        quantity=0,
        expiry_date=expiry_date,
        received_date=received_date,
        temperature_on_receipt=temperature_on_receipt,
    )
    db.add(lot)
    db.flush()
    return lot


def record_movement(
    db: Session,
    *,
    type: MovementType,
    product_id: int,
    quantity: int,
    moved_by_id: int,
    batch_number: str | None = None,
    from_location_id: int | None = None,
    to_location_id: int | None = None,
    reason: str | None = None,
    reference_number: str | None = None,
    idempotency_key: str | None = None,
) -> StockMovement:
    mv = StockMovement(
        type=type,
        product_id=product_id,
        batch_number=batch_number,
        from_location_id=from_location_id,
        to_location_id=to_location_id,
        quantity=quantity,
        reason=reason,
        reference_number=reference_number,
        moved_by_id=moved_by_id,
        idempotency_key=idempotency_key,
    )
    db.add(mv)
    db.flush()
    logger.debug("movement %s product=%s qty=%s ref=%s", type.value, product_id, quantity, reference_number)
    return mv


# ---------- LOT OPERATIONS ----------
def find_movement_by_key(db: Session, idempotency_key: str) -> StockMovement | None:
    return db.execute(
        select(StockMovement).where(StockMovement.idempotency_key == idempotency_key)
    ).scalar_one_or_none()


def lock_lot(db: Session, lot_id: int) -> InventoryLot:
    lot = db.execute(
        select(InventoryLot).where(InventoryLot.id == lot_id).with_for_update()
    ).scalar_one_or_none()
    if not lot:
        raise NotFoundError("Inventory lot not found")
    return lot


def adjust_lot(
    db: Session,
    lot: InventoryLot,
    *,
    quantity_change: int,
    reason: str,
    user_id: int,
    idempotency_key: str | None = None,
) -> StockMovement:
    """Correction d'inventaire signée ; le lot ne descend jamais sous zéro."""
    new_quantity = lot.quantity + quantity_change
    if new_quantity < 0:
        raise InsufficientStockError(
            f"Adjustment would make quantity negative (current={lot.quantity}, change={quantity_change})"
        )
    lot.quantity = new_quantity

    return record_movement(
        db,
        type=MovementType.adjustment,
        product_id=lot.product_id,
        batch_number=lot.batch_number,
        from_location_id=lot.location_id if quantity_change < 0 else None,
        to_location_id=lot.location_id if quantity_change > 0 else None,
        quantity=abs(quantity_change),
        reason=reason,
        moved_by_id=user_id,
        idempotency_key=idempotency_key,
    )


def transfer_lot(
    db: Session,
    lot: InventoryLot,
    *,
    to_location_id: int,
    quantity: int,
    reason: str | None,
    user_id: int,
    idempotency_key: str | None = None,
) -> StockMovement:
    if to_location_id == lot.location_id:
        raise InvalidRequestError("Destination must differ from the current location")
    destination = db.get(StorageLocation, to_location_id)
    if not destination:
        raise InvalidRequestError(f"Invalid location_id {to_location_id}")
    check_temperature_zone(lot.product, destination)
    if quantity > lot.quantity:
        raise InsufficientStockError(f"Cannot transfer {quantity} units, lot holds {lot.quantity}")

    target = get_or_create_lot(
        db,
        product_id=lot.product_id,
        location_id=destination.id,
        batch_number=lot.batch_number,
        expiry_date=lot.expiry_date,
        received_date=lot.received_date,
        temperature_on_receipt=lot.temperature_on_receipt,
    )
    lot.quantity -= quantity
    target.quantity += quantity

    return record_movement(
        db,
        type=MovementType.transfer,
        product_id=lot.product_id,
        batch_number=lot.batch_number,
        from_location_id=lot.location_id,
        to_location_id=destination.id,
        quantity=quantity,
        reason=reason,
        moved_by_id=user_id,
        idempotency_key=idempotency_key,
    )


def dispose_lot(
    db: Session,
    lot: InventoryLot,
    *,
    quantity: int,
    reason: str,
    user_id: int,
    idempotency_key: str | None = None,
) -> StockMovement:
    """Mise au rebut (produit expiré, casse, rupture de la chaîne du froid)."""
    if quantity > lot.quantity:
        raise InsufficientStockError(f"Cannot dispose {quantity} units, lot holds {lot.quantity}")
    lot.quantity -= quantity

    return record_movement(
        db,
        type=MovementType.disposal,
        product_id=lot.product_id,
        batch_number=lot.batch_number,
        from_location_id=lot.location_id,
        quantity=quantity,
        reason=reason,
        moved_by_id=user_id,
        idempotency_key=idempotency_key,
    )
