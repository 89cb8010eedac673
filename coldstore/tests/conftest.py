from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from coldstore.app.api.deps import get_db, get_today
from coldstore.app.db.base import Base
from coldstore.app.db.models.core_types import Role, TemperatureZone
from coldstore.app.db.models.models_v1 import (
    Customer,
    InventoryLot,
    Product,
    StorageLocation,
    Supplier,
    User,
)
from coldstore.app.main import app

# Date figée : les règles d'expiration ne dépendent pas du jour du run
TODAY = date(2026, 3, 1)


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Session DB isolée par test.

    Base SQLite en mémoire, schéma recréé à chaque test : rien ne fuit
    d'un test à l'autre, même après commit().
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_fk(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def users(db_session):
    rows = {
        "super_admin": User(email="root@test.local", username="root", name="Root", role=Role.super_admin),
        "admin": User(email="admin@test.local", username="admin", name="Alice Admin", role=Role.admin),
        "employee": User(email="emp@test.local", username="emp", name="Eddie Employee", role=Role.employee),
        "inactive": User(
            email="gone@test.local", username="gone", name="Gone", role=Role.admin, active=False
        ),
    }
    db_session.add_all(rows.values())
    db_session.commit()
    return rows


def auth(user: User) -> dict:
    return {"X-User-Id": str(user.id)}


@pytest.fixture
def admin_headers(users):
    return auth(users["admin"])


@pytest.fixture
def employee_headers(users):
    return auth(users["employee"])


@pytest.fixture
def catalog(db_session):
    """Master data minimale : un produit surgelé, un frais, leurs emplacements, un fournisseur, un client."""
    data = {
        "supplier": Supplier(code="SUP-1", name="Ocean Supply"),
        "customer": Customer(code="CUST-1", name="Metro Mart", address="1 Main St"),
        "tuna": Product(
            sku="TUNA-1KG",
            name="Frozen Tuna 1kg",
            category="Seafood",
            temperature_zone=TemperatureZone.frozen,
            shelf_life_days=180,
            min_stock_level=10,
        ),
        "milk": Product(
            sku="MILK-1L",
            name="Fresh Milk 1L",
            category="Dairy",
            temperature_zone=TemperatureZone.chilled,
            shelf_life_days=10,
            min_stock_level=0,
        ),
        "freezer_a": StorageLocation(code="FZ-A", zone="Freezer", temperature_zone=TemperatureZone.frozen, capacity=200),
        "freezer_b": StorageLocation(code="FZ-B", zone="Freezer", temperature_zone=TemperatureZone.frozen),
        "chiller": StorageLocation(code="CH-A", zone="Chiller", temperature_zone=TemperatureZone.chilled),
    }
    db_session.add_all(data.values())
    db_session.commit()
    return data


@pytest.fixture
def make_lot(db_session):
    def _make(product, location, batch, quantity, expiry_in_days, received_days_ago=0):
        lot = InventoryLot(
            product_id=product.id,
            location_id=location.id,
            batch_number=batch,
            quantity=quantity,
            expiry_date=TODAY + timedelta(days=expiry_in_days),
            received_date=TODAY - timedelta(days=received_days_ago),
        )
        db_session.add(lot)
        db_session.commit()
        return lot

    return _make


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def headers_for():
    return auth
