from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, get_today, require_roles, service_errors
from coldstore.app.db.models.core_types import MANAGER_ROLES, InboundStatus
from coldstore.app.db.models.models_v1 import InboundOrder, User
from coldstore.app.schemas.inbound import InboundOrderCreate, InboundOrderRead, InboundOrderUpdate, ReceivePayload
from coldstore.services import receiving

router = APIRouter(prefix="/inbound")


def _get_order(db: Session, order_id: int) -> InboundOrder:
    order = db.get(InboundOrder, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Inbound order not found")
    return order


@router.get("", response_model=list[InboundOrderRead])
def list_inbound_orders(
    status: InboundStatus | None = None,
    supplier_id: int | None = None,
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    stmt = select(InboundOrder).order_by(InboundOrder.created_at.desc(), InboundOrder.id.desc())
    if status is not None:
        stmt = stmt.where(InboundOrder.status == status)
    if supplier_id is not None:
        stmt = stmt.where(InboundOrder.supplier_id == supplier_id)
    return db.execute(stmt).scalars().all()


@router.get("/{order_id}", response_model=InboundOrderRead)
def get_inbound_order(order_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    return _get_order(db, order_id)


@router.post("", response_model=InboundOrderRead, status_code=201)
def create_inbound_order(
    payload: InboundOrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*MANAGER_ROLES)),
):
    with service_errors(db):
        order = receiving.create_inbound_order(db, payload, created_by_id=user.id)
    db.commit()
    db.refresh(order)
    return order


@router.patch("/{order_id}", response_model=InboundOrderRead)
def update_inbound_order(
    order_id: int,
    payload: InboundOrderUpdate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    order = _get_order(db, order_id)
    with service_errors(db):
        receiving.update_inbound_order(db, order, payload)
    db.commit()
    db.refresh(order)
    return order


@router.post("/{order_id}/cancel", response_model=InboundOrderRead)
def cancel_inbound_order(
    order_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    order = _get_order(db, order_id)
    with service_errors(db):
        receiving.cancel_inbound_order(order)
    db.commit()
    db.refresh(order)
    return order


@router.post("/{order_id}/receive", response_model=InboundOrderRead)
def receive_inbound_order(
    order_id: int,
    payload: ReceivePayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    today: date = Depends(get_today),
):
    # lock de la commande : deux réceptions simultanées ne doivent pas se croiser
    order = db.execute(
        select(InboundOrder).where(InboundOrder.id == order_id).with_for_update()
    ).scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Inbound order not found")

    with service_errors(db):
        receiving.receive_items(db, order, payload, user_id=user.id, today=today)
    db.commit()
    db.refresh(order)
    return order


@router.delete("/{order_id}", status_code=204)
def delete_inbound_order(
    order_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    order = _get_order(db, order_id)
    with service_errors(db):
        receiving.ensure_editable(order, action="delete")
    db.delete(order)
    db.commit()
