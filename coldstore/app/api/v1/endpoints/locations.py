from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from coldstore.app.api.deps import get_current_user, get_db, require_roles
from coldstore.app.db.models.core_types import MANAGER_ROLES, TemperatureZone
from coldstore.app.db.models.models_v1 import InventoryLot, StorageLocation
from coldstore.app.schemas.location import LocationCreate, LocationStockRead

router = APIRouter(prefix="/locations")


def _location_stock(db: Session, location_ids: list[int]) -> dict[int, int]:
    if not location_ids:
        return {}
    rows = db.execute(
        select(InventoryLot.location_id, func.coalesce(func.sum(InventoryLot.quantity), 0))
        .where(InventoryLot.location_id.in_(location_ids))
        .group_by(InventoryLot.location_id)
    ).all()
    return {int(lid): int(qty) for lid, qty in rows}


def _with_stock(loc: StorageLocation, stock: dict[int, int]) -> LocationStockRead:
    out = LocationStockRead.model_validate(loc)
    out.current_stock = stock.get(loc.id, 0)
    # % de remplissage, 0 si pas de capacité définie
    out.utilization = round(out.current_stock / loc.capacity * 100) if loc.capacity else 0
    return out


def _get_location(db: Session, location_id: int) -> StorageLocation:
    loc = db.get(StorageLocation, location_id)
    if not loc:
        raise HTTPException(status_code=404, detail="Location not found")
    return loc


@router.get("", response_model=list[LocationStockRead])
def list_locations(
    temperature_zone: TemperatureZone | None = None,
    active: bool | None = None,
    db: Session = Depends(get_db),
    _user=Depends(get_current_user),
):
    stmt = select(StorageLocation).order_by(StorageLocation.code)
    if temperature_zone is not None:
        stmt = stmt.where(StorageLocation.temperature_zone == temperature_zone)
    if active is not None:
        stmt = stmt.where(StorageLocation.active.is_(active))

    rows = db.execute(stmt).scalars().all()
    stock = _location_stock(db, [l.id for l in rows])
    return [_with_stock(l, stock) for l in rows]


@router.get("/{location_id}", response_model=LocationStockRead)
def get_location(location_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    loc = _get_location(db, location_id)
    return _with_stock(loc, _location_stock(db, [loc.id]))


@router.post("", response_model=LocationStockRead, status_code=201)
def create_location(
    payload: LocationCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    exists = db.execute(select(StorageLocation).where(StorageLocation.code == payload.code)).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Location code already exists")

    loc = StorageLocation(**payload.model_dump())
    db.add(loc)
    db.commit()
    db.refresh(loc)
    return _with_stock(loc, {})


@router.patch("/{location_id}", response_model=LocationStockRead)
def update_location(
    location_id: int,
    payload: LocationCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    loc = _get_location(db, location_id)
    exists = db.execute(
        select(StorageLocation.id)
        .where(StorageLocation.code == payload.code)
        .where(StorageLocation.id != loc.id)
    ).first()
    if exists:
        raise HTTPException(status_code=409, detail="Location code already exists")

    for field, value in payload.model_dump().items():
        setattr(loc, field, value)
    db.commit()
    db.refresh(loc)
    return _with_stock(loc, _location_stock(db, [loc.id]))


@router.delete("/{location_id}", status_code=204)
def delete_location(
    location_id: int,
    db: Session = Depends(get_db),
    _user=Depends(require_roles(*MANAGER_ROLES)),
):
    loc = _get_location(db, location_id)
    if db.execute(select(InventoryLot.id).where(InventoryLot.location_id == loc.id).limit(1)).first():
        raise HTTPException(status_code=400, detail="Cannot delete location with inventory")

    db.delete(loc)
    db.commit()
