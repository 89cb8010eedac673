from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, get_today, require_roles, service_errors
from coldstore.app.db.models.core_types import MANAGER_ROLES, OutboundStatus
from coldstore.app.db.models.models_v1 import OutboundOrder, User
from coldstore.app.schemas.outbound import (
    AmendPayload,
    DispatchPayload,
    OutboundOrderCreate,
    OutboundOrderRead,
    OutboundOrderUpdate,
)
from coldstore.services import dispatch
from coldstore.services.delivery_receipt import render_delivery_receipt

router = APIRouter(prefix="/outbound")


def _get_order(db: Session, order_id: int, *, lock: bool = False) -> OutboundOrder:
    stmt = select(OutboundOrder).where(OutboundOrder.id == order_id)
    if lock:
        stmt = stmt.with_for_update()
    order = db.execute(stmt).scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Outbound order not found")
    return order


@router.get("", response_model=list[OutboundOrderRead])
def list_outbound_orders(
    status: OutboundStatus | None = None,
    customer_id: int | None = None,
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    stmt = select(OutboundOrder).order_by(OutboundOrder.created_at.desc(), OutboundOrder.id.desc())
    if status is not None:
        stmt = stmt.where(OutboundOrder.status == status)
    if customer_id is not None:
        stmt = stmt.where(OutboundOrder.customer_id == customer_id)
    return db.execute(stmt).scalars().all()


@router.get("/{order_id}", response_model=OutboundOrderRead)
def get_outbound_order(order_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    return _get_order(db, order_id)


@router.post("", response_model=OutboundOrderRead, status_code=201)
def create_outbound_order(
    payload: OutboundOrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*MANAGER_ROLES)),
):
    with service_errors(db):
        order = dispatch.create_outbound_order(db, payload, created_by_id=user.id)
    db.commit()
    db.refresh(order)
    return order


@router.patch("/{order_id}", response_model=OutboundOrderRead)
def update_outbound_order(
    order_id: int,
    payload: OutboundOrderUpdate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    order = _get_order(db, order_id)
    with service_errors(db):
        dispatch.update_outbound_order(db, order, payload)
    db.commit()
    db.refresh(order)
    return order


@router.post("/{order_id}/cancel", response_model=OutboundOrderRead)
def cancel_outbound_order(
    order_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    order = _get_order(db, order_id)
    with service_errors(db):
        dispatch.cancel_outbound_order(order)
    db.commit()
    db.refresh(order)
    return order


@router.post("/{order_id}/dispatch", response_model=OutboundOrderRead)
def dispatch_outbound_order(
    order_id: int,
    payload: DispatchPayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    today: date = Depends(get_today),
):
    order = _get_order(db, order_id, lock=True)
    with service_errors(db):
        dispatch.dispatch_order(db, order, payload, user_id=user.id, today=today)
    db.commit()
    db.refresh(order)
    return order


@router.post("/{order_id}/amend", response_model=OutboundOrderRead)
def amend_outbound_order(
    order_id: int,
    payload: AmendPayload,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    today: date = Depends(get_today),
):
    order = _get_order(db, order_id, lock=True)
    with service_errors(db):
        dispatch.amend_order(db, order, payload, user=user, today=today)
    db.commit()
    db.refresh(order)
    return order


@router.get("/{order_id}/delivery-receipt")
def download_delivery_receipt(order_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    order = _get_order(db, order_id)
    with service_errors(db):
        content = render_delivery_receipt(order)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{order.dr_number}.pdf"'},
    )


@router.delete("/{order_id}", status_code=204)
def delete_outbound_order(
    order_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    order = _get_order(db, order_id)
    with service_errors(db):
        dispatch.ensure_deletable(order)
    db.delete(order)
    db.commit()
