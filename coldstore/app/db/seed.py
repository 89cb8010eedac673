from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from coldstore.app.core.config import settings
from coldstore.app.core.logging import configure_logging
from coldstore.app.db.session import SessionLocal
from coldstore.app.db.models.models_v1 import Customer, Product, StorageLocation, Supplier, User
from coldstore.app.db.models.core_types import Role, TemperatureZone

logger = logging.getLogger("coldstore.seed")

USERS = [
    {"email": "superadmin@coldstore.local", "username": "superadmin", "name": "Super Admin", "role": Role.super_admin},
    {"email": "admin@coldstore.local", "username": "admin", "name": "Warehouse Admin", "role": Role.admin},
    {"email": "employee@coldstore.local", "username": "employee", "name": "Warehouse Employee", "role": Role.employee},
]

SUPPLIERS = [
    {"code": "SUP-FISH", "name": "Pacific Seafood Trading", "contact_name": "M. Reyes", "phone": "+63 2 555 0101"},
    {"code": "SUP-MEAT", "name": "Highland Meat Packers", "contact_name": "J. Santos", "phone": "+63 2 555 0102"},
]

CUSTOMERS = [
    {"code": "CUST-001", "name": "Metro Supermarket", "contact_person": "A. Cruz", "address": "12 Market St."},
]

LOCATIONS = [
    {"code": "FZ-A-01", "zone": "Freezer A", "section": "A", "rack": "01", "temperature_zone": TemperatureZone.frozen, "capacity": 500},
    {"code": "FZ-A-02", "zone": "Freezer A", "section": "A", "rack": "02", "temperature_zone": TemperatureZone.frozen, "capacity": 500},
    {"code": "CH-B-01", "zone": "Chiller B", "section": "B", "rack": "01", "temperature_zone": TemperatureZone.chilled, "capacity": 300},
    {"code": "AM-C-01", "zone": "Dry Store C", "section": "C", "rack": "01", "temperature_zone": TemperatureZone.ambient, "capacity": 1000},
]

PRODUCTS = [
    {"sku": "FISH-TUNA-1KG", "name": "Frozen Tuna Loin 1kg", "category": "Seafood", "temperature_zone": TemperatureZone.frozen, "shelf_life_days": 365, "min_stock_level": 50, "weight_per_unit": 1},
    {"sku": "MEAT-BEEF-5KG", "name": "Frozen Beef Brisket 5kg", "category": "Meat", "temperature_zone": TemperatureZone.frozen, "shelf_life_days": 270, "min_stock_level": 20, "weight_per_unit": 5},
    {"sku": "DAIRY-MILK-1L", "name": "Fresh Milk 1L", "category": "Dairy", "temperature_zone": TemperatureZone.chilled, "shelf_life_days": 10, "min_stock_level": 100, "weight_per_unit": 1},
    {"sku": "DRY-RICE-25KG", "name": "Rice 25kg", "category": "Dry goods", "temperature_zone": TemperatureZone.ambient, "shelf_life_days": 540, "min_stock_level": 10, "weight_per_unit": 25},
]


def _ensure(db: Session, model, key: str, rows: list[dict]) -> int:
    """Insère les lignes absentes (clé naturelle ``key``), retourne le nombre créé."""
    created = 0
    column = getattr(model, key)
    for row in rows:
        if db.scalar(select(model).where(column == row[key])):
            continue
        db.add(model(**row))
        created += 1
    return created


def run_seed(db: Session) -> dict[str, int]:
    created = {
        "users": _ensure(db, User, "email", USERS),
        "suppliers": _ensure(db, Supplier, "code", SUPPLIERS),
        "customers": _ensure(db, Customer, "code", CUSTOMERS),
        "locations": _ensure(db, StorageLocation, "code", LOCATIONS),
        "products": _ensure(db, Product, "sku", PRODUCTS),
    }
    db.commit()
    return created


def main() -> None:
    configure_logging(settings.log_level)
    db = SessionLocal()
    try:
        created = run_seed(db)
        logger.info("SEED OK: %s", ", ".join(f"{k}={v}" for k, v in created.items()))
    finally:
        db.close()


if __name__ == "__main__":
    main()
