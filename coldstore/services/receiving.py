"""
Inbound service.

Création des bons de réception fournisseur, réception (mise en stock par
lot) et annulation. Le calcul de stock reste dans
    coldstore.services.inventory
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session

from coldstore.app.db.models.models_v1 import (
    InboundOrder,
    InboundOrderItem,
    Product,
    StorageLocation,
    Supplier,
    utcnow,
)
from coldstore.app.db.models.core_types import InboundStatus, MovementType
from coldstore.app.schemas.inbound import InboundOrderCreate, InboundOrderUpdate, ReceivePayload
from coldstore.services.errors import InvalidRequestError, WorkflowError
from coldstore.services.inventory import check_temperature_zone, get_or_create_lot, record_movement
from coldstore.services.numbering import next_number

logger = logging.getLogger(__name__)

INBOUND_PREFIX = "INB"
INBOUND_WIDTH = 4


def create_inbound_order(db: Session, payload: InboundOrderCreate, *, created_by_id: int) -> InboundOrder:
    # FK checks (fail fast, message clair)
    if not db.get(Supplier, payload.supplier_id):
        raise InvalidRequestError("Invalid supplier_id")
    for ln in payload.items:
        if not db.get(Product, ln.product_id):
            raise InvalidRequestError(f"Invalid product_id {ln.product_id}")
        if ln.location_id is not None and not db.get(StorageLocation, ln.location_id):
            raise InvalidRequestError(f"Invalid location_id {ln.location_id}")

    order = InboundOrder(
        order_number=next_number(db, InboundOrder.order_number, INBOUND_PREFIX, INBOUND_WIDTH),
        supplier_id=payload.supplier_id,
        status=InboundStatus.pending,
        expected_date=payload.expected_date,
        received_by=payload.received_by,
        driver_name=payload.driver_name,
        plate_number=payload.plate_number,
        notes=payload.notes,
        created_by_id=created_by_id,
    )
    for ln in payload.items:
        order.items.append(
            InboundOrderItem(
                product_id=ln.product_id,
                expected_quantity=ln.expected_quantity,
                received_quantity=0,
                batch_number=ln.batch_number,
                expiry_date=ln.expiry_date,
                location_id=ln.location_id,
                unit_price=ln.unit_price,
                notes=ln.notes,
            )
        )
    db.add(order)
    db.flush()
    logger.info("inbound order %s created (%d items)", order.order_number, len(order.items))
    return order


def ensure_editable(order: InboundOrder, action: str = "modify") -> None:
    if order.status == InboundStatus.completed:
        raise WorkflowError(f"Cannot {action} completed inbound order")


def update_inbound_order(db: Session, order: InboundOrder, payload: InboundOrderUpdate) -> InboundOrder:
    ensure_editable(order)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("supplier_id") is not None and not db.get(Supplier, changes["supplier_id"]):
        raise InvalidRequestError("Invalid supplier_id")
    if "supplier_id" in changes and changes["supplier_id"] is None:
        del changes["supplier_id"]

    for field, value in changes.items():
        setattr(order, field, value)
    db.flush()
    return order


def cancel_inbound_order(order: InboundOrder) -> InboundOrder:
    if order.status != InboundStatus.pending:
        raise WorkflowError(
            f"Cannot cancel order with status: {order.status.value}. Only PENDING orders can be cancelled."
        )
    order.status = InboundStatus.cancelled
    logger.info("inbound order %s cancelled", order.order_number)
    return order


def receive_items(
    db: Session,
    order: InboundOrder,
    payload: ReceivePayload,
    *,
    user_id: int,
    today: date,
) -> InboundOrder:
    """
    Réception : ajoute les quantités reçues au stock (lot produit/emplacement/batch).

    Règle métier :
        received_quantity est cumulatif (plusieurs réceptions partielles)
        COMPLETED quand chaque ligne a reçu >= expected, sinon RECEIVING
    """
    if order.status == InboundStatus.completed:
        raise WorkflowError("Inbound order already completed")
    if order.status == InboundStatus.cancelled:
        raise WorkflowError("Cannot receive a cancelled inbound order")

    items = {item.id: item for item in order.items}

    for ln in payload.items:
        item = items.get(ln.item_id)
        if item is None:
            raise InvalidRequestError(f"Item {ln.item_id} not found in inbound order")

        location = db.get(StorageLocation, ln.location_id)
        if not location:
            raise InvalidRequestError(f"Invalid location_id {ln.location_id}")

        product = item.product
        check_temperature_zone(product, location)

        expiry_date = ln.expiry_date or today + timedelta(days=product.shelf_life_days)

        item.received_quantity += ln.received_quantity
        item.batch_number = ln.batch_number
        item.expiry_date = expiry_date
        item.temperature_on_receipt = ln.temperature_on_receipt
        item.location_id = location.id
        if ln.unit_price is not None:
            item.unit_price = ln.unit_price

        if ln.received_quantity <= 0:
            continue

        lot = get_or_create_lot(
            db,
            product_id=product.id,
            location_id=location.id,
            batch_number=ln.batch_number,
            expiry_date=expiry_date,
            received_date=today,
            temperature_on_receipt=ln.temperature_on_receipt,
        )
        lot.quantity += ln.received_quantity

        record_movement(
            db,
            type=MovementType.receipt,
            product_id=product.id,
            batch_number=ln.batch_number,
            to_location_id=location.id,
            quantity=ln.received_quantity,
            reason="Inbound receipt",
            reference_number=order.order_number,
            moved_by_id=user_id,
        )

    if all(item.received_quantity >= item.expected_quantity for item in order.items):
        order.status = InboundStatus.completed
        order.received_date = utcnow()
    else:
        order.status = InboundStatus.receiving

    db.flush()
    logger.info("inbound order %s received, status=%s", order.order_number, order.status.value)
    return order
