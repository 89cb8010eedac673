"""
FEFO (First Expired, First Out).

Sélection des lots à décrémenter pour une sortie de stock : on prend
toujours le lot qui expire le plus tôt. Les lots déjà expirés ne sont
jamais prélevés.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.db.models.models_v1 import InventoryLot, OutboundPick
from coldstore.services.errors import ExpiredStockError, InsufficientStockError

logger = logging.getLogger(__name__)


def pick_lots(
    db: Session,
    *,
    product_id: int,
    quantity: int,
    today: date,
    batch_number: str | None = None,
) -> list[tuple[InventoryLot, int]]:
    """
    Décrémente les lots du produit (FEFO) jusqu'à couvrir ``quantity``.

    Retourne les allocations [(lot, qty prise)]. Les lots sont verrouillés
    (FOR UPDATE) ; en cas de stock insuffisant rien n'est écrit en base
    tant que l'appelant ne commit pas, il doit faire un rollback.
    """
    if quantity <= 0:
        return []

    stmt = (
        select(InventoryLot)
        .where(InventoryLot.product_id == product_id)
        .where(InventoryLot.quantity > 0)
        .order_by(InventoryLot.expiry_date, InventoryLot.received_date, InventoryLot.id)
        .with_for_update()
    )
    if batch_number:
        stmt = stmt.where(InventoryLot.batch_number == batch_number)

    lots = db.execute(stmt).scalars().all()
    if not lots:
        raise InsufficientStockError("No inventory available for this product")

    usable = [l for l in lots if l.expiry_date >= today]
    if not usable:
        raise ExpiredStockError("Cannot pick expired products")

    remaining = quantity
    allocations: list[tuple[InventoryLot, int]] = []
    for lot in usable:
        if remaining <= 0:
            break
        take = min(lot.quantity, remaining)
        lot.quantity -= take
        remaining -= take
        allocations.append((lot, take))

    if remaining > 0:
        raise InsufficientStockError(f"Insufficient inventory. Short by {remaining} units")

    logger.debug(
        "FEFO pick product=%s qty=%s lots=%s",
        product_id,
        quantity,
        [(lot.id, take) for lot, take in allocations],
    )
    return allocations


def return_to_lots(picks: Iterable[OutboundPick], quantity: int) -> list[tuple[InventoryLot, int]]:
    """
    Remet ``quantity`` unités dans les lots d'où elles ont été prélevées.

    On annule d'abord les prélèvements sur les lots qui expirent le plus
    tard : le stock qui reste chez le client est celui qui expire le plus tôt.
    """
    remaining = quantity
    returned: list[tuple[InventoryLot, int]] = []

    ordered = sorted(picks, key=lambda p: (p.lot.expiry_date, p.lot.received_date, p.lot.id), reverse=True)
    for pick in ordered:
        if remaining <= 0:
            break
        give = min(pick.quantity, remaining)
        if give <= 0:
            continue
        pick.quantity -= give
        pick.lot.quantity += give
        remaining -= give
        returned.append((pick.lot, give))

    if remaining > 0:
        raise InsufficientStockError(
            f"Cannot return {quantity} units: only {quantity - remaining} were picked from inventory"
        )
    return returned
