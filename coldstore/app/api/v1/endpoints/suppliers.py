from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, require_roles
from coldstore.app.db.models.core_types import MANAGER_ROLES
from coldstore.app.db.models.models_v1 import InboundOrder, Supplier
from coldstore.app.schemas.supplier import SupplierCreate, SupplierRead

router = APIRouter(prefix="/suppliers")


def _get_supplier(db: Session, supplier_id: int) -> Supplier:
    s = db.get(Supplier, supplier_id)
    if not s:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return s


@router.get("", response_model=list[SupplierRead])
def list_suppliers(
    active: bool | None = None,
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    stmt = select(Supplier).order_by(Supplier.name)
    if active is not None:
        stmt = stmt.where(Supplier.active.is_(active))
    return db.execute(stmt).scalars().all()


@router.get("/{supplier_id}", response_model=SupplierRead)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    return _get_supplier(db, supplier_id)


@router.post("", response_model=SupplierRead, status_code=201)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    exists = db.execute(select(Supplier).where(Supplier.code == payload.code)).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Supplier code already exists")

    s = Supplier(**payload.model_dump())
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


@router.patch("/{supplier_id}", response_model=SupplierRead)
def update_supplier(
    supplier_id: int,
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    s = _get_supplier(db, supplier_id)
    exists = db.execute(
        select(Supplier.id).where(Supplier.code == payload.code).where(Supplier.id != s.id)
    ).first()
    if exists:
        raise HTTPException(status_code=409, detail="Supplier code already exists")

    for field, value in payload.model_dump().items():
        setattr(s, field, value)
    db.commit()
    db.refresh(s)
    return s


@router.delete("/{supplier_id}", status_code=204)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    s = _get_supplier(db, supplier_id)
    if db.execute(select(InboundOrder.id).where(InboundOrder.supplier_id == s.id).limit(1)).first():
        raise HTTPException(status_code=400, detail="Cannot delete supplier with inbound orders")

    db.delete(s)
    db.commit()
