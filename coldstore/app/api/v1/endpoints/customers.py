from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, require_roles
from coldstore.app.db.models.core_types import MANAGER_ROLES
from coldstore.app.db.models.models_v1 import Customer, OutboundOrder
from coldstore.app.schemas.customer import CustomerCreate, CustomerDetail, CustomerOrderBrief, CustomerRead

router = APIRouter(prefix="/customers")

RECENT_ORDERS = 5


def _get_customer(db: Session, customer_id: int) -> Customer:
    c = db.get(Customer, customer_id)
    if not c:
        raise HTTPException(status_code=404, detail="Customer not found")
    return c


@router.get("", response_model=list[CustomerRead])
def list_customers(
    active: bool | None = None,
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    stmt = select(Customer).order_by(Customer.name)
    if active is not None:
        stmt = stmt.where(Customer.active.is_(active))
    return db.execute(stmt).scalars().all()


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(customer_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    c = _get_customer(db, customer_id)
    orders = (
        db.execute(
            select(OutboundOrder)
            .where(OutboundOrder.customer_id == c.id)
            .order_by(OutboundOrder.created_at.desc(), OutboundOrder.id.desc())
            .limit(RECENT_ORDERS)
        )
        .scalars()
        .all()
    )
    out = CustomerDetail.model_validate(c)
    out.recent_orders = [CustomerOrderBrief.model_validate(o) for o in orders]
    return out


@router.post("", response_model=CustomerRead, status_code=201)
def create_customer(
    payload: CustomerCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    exists = db.execute(select(Customer).where(Customer.code == payload.code)).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Customer code already exists")

    c = Customer(**payload.model_dump())
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@router.patch("/{customer_id}", response_model=CustomerRead)
def update_customer(
    customer_id: int,
    payload: CustomerCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    c = _get_customer(db, customer_id)
    exists = db.execute(
        select(Customer.id).where(Customer.code == payload.code).where(Customer.id != c.id)
    ).first()
    if exists:
        raise HTTPException(status_code=409, detail="Customer code already exists")

    for field, value in payload.model_dump().items():
        setattr(c, field, value)
    db.commit()
    db.refresh(c)
    return c


@router.delete("/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    c = _get_customer(db, customer_id)
    if db.execute(select(OutboundOrder.id).where(OutboundOrder.customer_id == c.id).limit(1)).first():
        raise HTTPException(status_code=400, detail="Cannot delete customer with outbound orders")

    db.delete(c)
    db.commit()
