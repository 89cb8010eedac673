"""
Outbound service.

Commandes client (réservation), expédition avec numéro de DR et
amendement d'une expédition. Les sorties de stock passent toutes par
le FEFO (coldstore.services.fefo).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from coldstore.app.db.models.models_v1 import (
    Customer,
    OutboundOrder,
    OutboundOrderItem,
    OutboundPick,
    Product,
    User,
    utcnow,
)
from coldstore.app.db.models.core_types import MovementType, OutboundStatus
from coldstore.app.schemas.outbound import (
    AmendPayload,
    DispatchPayload,
    OutboundOrderCreate,
    OutboundOrderUpdate,
)
from coldstore.services.errors import InsufficientStockError, InvalidRequestError, WorkflowError
from coldstore.services.fefo import pick_lots, return_to_lots
from coldstore.services.inventory import get_available, record_movement
from coldstore.services.numbering import next_number

logger = logging.getLogger(__name__)

ORDER_PREFIX = "ORD"
ORDER_WIDTH = 4
DR_PREFIX = "DR-"
DR_WIDTH = 3

# Progression manuelle (PATCH) ; DISPATCHED et CANCELLED passent par leurs actions
STATUS_SEQUENCE = [OutboundStatus.pending, OutboundStatus.picking, OutboundStatus.packed]


def compute_total(weight_kilos: Decimal | None, unit_price: Decimal | None) -> Decimal | None:
    """total = poids x prix unitaire (prix au kilo)"""
    if weight_kilos is None or unit_price is None:
        return None
    return (Decimal(weight_kilos) * Decimal(unit_price)).quantize(Decimal("0.01"))


def _items_by_id(order: OutboundOrder) -> dict[int, OutboundOrderItem]:
    return {item.id: item for item in order.items}


def create_outbound_order(db: Session, payload: OutboundOrderCreate, *, created_by_id: int) -> OutboundOrder:
    """
    Advance order : la commande PENDING réserve le stock demandé.

    Refusée si, pour un produit, la somme demandée dépasse le disponible
    (on hand - réservé par les autres commandes ouvertes).
    """
    if not db.get(Customer, payload.customer_id):
        raise InvalidRequestError("Invalid customer_id")

    requested: dict[int, int] = defaultdict(int)
    for ln in payload.items:
        requested[ln.product_id] += ln.requested_quantity

    for product_id, qty in requested.items():
        product = db.get(Product, product_id)
        if not product:
            raise InvalidRequestError(f"Invalid product_id {product_id}")
        available = get_available(db, product_id)
        if available < qty:
            logger.warning(
                "order rejected: product %s available=%s requested=%s", product.sku, available, qty
            )
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}. Available: {available}, Requested: {qty}"
            )

    order = OutboundOrder(
        order_number=next_number(db, OutboundOrder.order_number, ORDER_PREFIX, ORDER_WIDTH),
        customer_id=payload.customer_id,
        delivery_address=payload.delivery_address,
        status=OutboundStatus.pending,
        notes=payload.notes,
        created_by_id=created_by_id,
    )
    for ln in payload.items:
        order.items.append(
            OutboundOrderItem(
                product_id=ln.product_id,
                requested_quantity=ln.requested_quantity,
                picked_quantity=0,
                box_quantity=ln.box_quantity,
                weight_kilos=ln.weight_kilos,
                unit_price=ln.unit_price,
                total_amount=compute_total(ln.weight_kilos, ln.unit_price),
                notes=ln.notes,
            )
        )
    db.add(order)
    db.flush()
    logger.info("outbound order %s created (%d items)", order.order_number, len(order.items))
    return order


def update_outbound_order(db: Session, order: OutboundOrder, payload: OutboundOrderUpdate) -> OutboundOrder:
    if order.status == OutboundStatus.dispatched:
        raise WorkflowError("Cannot modify dispatched order")
    if order.status == OutboundStatus.cancelled:
        raise WorkflowError("Cannot modify cancelled order")

    changes = payload.model_dump(exclude_unset=True)

    if "customer_id" in changes:
        if changes["customer_id"] is None:
            del changes["customer_id"]
        elif not db.get(Customer, changes["customer_id"]):
            raise InvalidRequestError("Invalid customer_id")

    status = changes.pop("status", None)
    if status is not None and status != order.status:
        if status not in STATUS_SEQUENCE:
            raise WorkflowError(f"Status {status.value} can only be set by its dedicated action")
        if STATUS_SEQUENCE.index(status) < STATUS_SEQUENCE.index(order.status):
            raise WorkflowError(f"Cannot move order back from {order.status.value} to {status.value}")
        order.status = status

    for field, value in changes.items():
        setattr(order, field, value)
    db.flush()
    return order


def cancel_outbound_order(order: OutboundOrder) -> OutboundOrder:
    if order.status != OutboundStatus.pending:
        raise WorkflowError(
            f"Cannot cancel order with status: {order.status.value}. Only PENDING orders can be cancelled."
        )
    order.status = OutboundStatus.cancelled
    logger.info("outbound order %s cancelled, reservation released", order.order_number)
    return order


def ensure_deletable(order: OutboundOrder) -> None:
    if order.status == OutboundStatus.dispatched:
        raise WorkflowError("Cannot delete dispatched order")


def dispatch_order(
    db: Session,
    order: OutboundOrder,
    payload: DispatchPayload,
    *,
    user_id: int,
    today: date,
) -> OutboundOrder:
    """
    Expédition : décrémente les lots (FEFO), trace un PICK par lot prélevé,
    attribue le numéro de DR et passe la commande en DISPATCHED.

    Tout ou rien : une erreur sur une ligne laisse l'appelant faire le rollback.
    """
    if order.status == OutboundStatus.dispatched:
        raise WorkflowError("Order already dispatched")
    if order.status == OutboundStatus.cancelled:
        raise WorkflowError("Cannot dispatch a cancelled order")

    items = _items_by_id(order)
    dr_number = next_number(db, OutboundOrder.dr_number, DR_PREFIX, DR_WIDTH)
    reference = f"{order.order_number} / {dr_number}"

    for ln in payload.items:
        item = items.get(ln.item_id)
        if item is None:
            raise InvalidRequestError(f"Item {ln.item_id} not found in order")
        if ln.picked_quantity > item.requested_quantity:
            raise InvalidRequestError(
                f"Picked quantity ({ln.picked_quantity}) cannot exceed requested quantity "
                f"({item.requested_quantity}) for {item.product.name}"
            )

        item.picked_quantity = ln.picked_quantity
        if ln.box_quantity is not None:
            item.box_quantity = ln.box_quantity
        if ln.weight_kilos is not None:
            item.weight_kilos = ln.weight_kilos
        item.total_amount = compute_total(item.weight_kilos, item.unit_price)

        if ln.picked_quantity <= 0:
            item.batch_number = ln.batch_number
            item.expiry_date = ln.expiry_date
            continue

        allocations = pick_lots(
            db,
            product_id=item.product_id,
            quantity=ln.picked_quantity,
            today=today,
            batch_number=ln.batch_number,
        )
        first_lot = allocations[0][0]
        item.batch_number = ln.batch_number or first_lot.batch_number
        item.expiry_date = ln.expiry_date or first_lot.expiry_date

        for lot, taken in allocations:
            item.picks.append(OutboundPick(lot=lot, quantity=taken))
            record_movement(
                db,
                type=MovementType.pick,
                product_id=item.product_id,
                batch_number=lot.batch_number,
                from_location_id=lot.location_id,
                quantity=taken,
                reason="Outbound dispatch",
                reference_number=reference,
                moved_by_id=user_id,
            )

    order.status = OutboundStatus.dispatched
    order.dr_number = dr_number
    order.dispatch_date = utcnow()
    order.prepared_by = payload.prepared_by
    db.flush()

    logger.info("outbound order %s dispatched as %s", order.order_number, dr_number)
    return order


def amend_order(
    db: Session,
    order: OutboundOrder,
    payload: AmendPayload,
    *,
    user: User,
    today: date,
) -> OutboundOrder:
    """
    Amendement d'une commande expédiée (retour client ou correction).

    Règle métier, par ligne :
        delta = picked actuel - nouveau picked
        delta > 0 : on remet delta unités dans les lots d'origine (RETURN)
        delta < 0 : on prélève -delta unités en FEFO (PICK)
    """
    if order.status != OutboundStatus.dispatched:
        raise WorkflowError("Only dispatched orders can be amended")

    items = _items_by_id(order)
    reference = f"{order.order_number} / {order.dr_number} (AMENDED)"

    for ln in payload.items:
        item = items.get(ln.item_id)
        if item is None:
            raise InvalidRequestError(f"Item {ln.item_id} not found in order")

        delta = item.picked_quantity - ln.new_picked_quantity

        if delta > 0:
            for lot, qty in return_to_lots(item.picks, delta):
                record_movement(
                    db,
                    type=MovementType.return_,
                    product_id=item.product_id,
                    batch_number=lot.batch_number,
                    to_location_id=lot.location_id,
                    quantity=qty,
                    reason=ln.reason or "Amendment - items returned",
                    reference_number=reference,
                    moved_by_id=user.id,
                )

        elif delta < 0:
            additional = -delta
            # une commande expédiée ne réserve plus rien : on ne doit pas
            # entamer le stock promis aux autres commandes ouvertes
            available = get_available(db, item.product_id)
            if available < additional:
                raise InsufficientStockError(
                    f"Insufficient stock for {item.product.name} to pick additional {additional} units "
                    f"(available={available})"
                )
            for lot, taken in pick_lots(db, product_id=item.product_id, quantity=additional, today=today):
                item.picks.append(OutboundPick(lot=lot, quantity=taken))
                record_movement(
                    db,
                    type=MovementType.pick,
                    product_id=item.product_id,
                    batch_number=lot.batch_number,
                    from_location_id=lot.location_id,
                    quantity=taken,
                    reason=ln.reason or "Amendment - additional items picked",
                    reference_number=reference,
                    moved_by_id=user.id,
                )

        item.picked_quantity = ln.new_picked_quantity
        item.box_quantity = ln.new_box_quantity
        item.weight_kilos = ln.new_weight_kilos
        item.total_amount = compute_total(item.weight_kilos, item.unit_price)

    stamp = utcnow().isoformat(timespec="seconds")
    amendment_log = (
        f"\n\n[AMENDMENT - {stamp}]\nAmended by: {user.name or user.email}\nNotes: {payload.amendment_notes}"
    )
    order.notes = (order.notes or "") + amendment_log
    db.flush()

    logger.info("outbound order %s amended (%d items)", order.order_number, len(payload.items))
    return order
