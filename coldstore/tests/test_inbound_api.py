from datetime import timedelta

from sqlalchemy import select

from coldstore.app.db.models.core_types import MovementType
from coldstore.app.db.models.models_v1 import InventoryLot, StockMovement


def _create(client, headers, catalog, **extra):
    body = {
        "supplier_id": catalog["supplier"].id,
        "driver_name": "Ben",
        "items": [
            {"product_id": catalog["tuna"].id, "expected_quantity": 10},
            {"product_id": catalog["milk"].id, "expected_quantity": 5},
        ],
    }
    body.update(extra)
    return client.post("/v1/inbound", json=body, headers=headers)


def test_create_inbound_order(client, admin_headers, catalog):
    r = _create(client, admin_headers, catalog)

    assert r.status_code == 201, r.text
    data = r.json()
    assert data["order_number"] == "INB0001"
    assert data["status"] == "PENDING"
    assert [i["received_quantity"] for i in data["items"]] == [0, 0]

    assert _create(client, admin_headers, catalog).json()["order_number"] == "INB0002"


def test_create_requires_manager_role(client, employee_headers, catalog):
    assert _create(client, employee_headers, catalog).status_code == 403


def test_create_validates_references(client, admin_headers, catalog):
    r = _create(client, admin_headers, catalog, supplier_id=999)
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid supplier_id"

    r = _create(client, admin_headers, catalog, items=[])
    assert r.status_code == 400
    assert r.json()["detail"] == "Validation error"


def test_partial_then_complete_receipt(client, admin_headers, employee_headers, catalog, db_session, today):
    """
    GIVEN
    - un bon INB de 10 thon + 5 lait

    WHEN
    - réception 1 : 6 thon (sans date d'expiration)
    - réception 2 : 4 thon même batch + 5 lait

    THEN
    - statut RECEIVING puis COMPLETED
    - un seul lot thon de 10, expiration = today + shelf_life
    - un mouvement RECEIPT par réception positive
    """
    order = _create(client, admin_headers, catalog).json()
    tuna_item, milk_item = order["items"]

    r = client.post(
        f"/v1/inbound/{order['id']}/receive",
        json={
            "items": [
                {
                    "item_id": tuna_item["id"],
                    "received_quantity": 6,
                    "batch_number": "T-001",
                    "location_id": catalog["freezer_a"].id,
                    "temperature_on_receipt": -18.5,
                },
            ]
        },
        headers=employee_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "RECEIVING"

    r = client.post(
        f"/v1/inbound/{order['id']}/receive",
        json={
            "items": [
                {
                    "item_id": tuna_item["id"],
                    "received_quantity": 4,
                    "batch_number": "T-001",
                    "location_id": catalog["freezer_a"].id,
                },
                {
                    "item_id": milk_item["id"],
                    "received_quantity": 5,
                    "batch_number": "M-001",
                    "location_id": catalog["chiller"].id,
                    "expiry_date": (today + timedelta(days=8)).isoformat(),
                },
            ]
        },
        headers=employee_headers,
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["status"] == "COMPLETED"
    assert data["received_date"] is not None
    assert [i["received_quantity"] for i in data["items"]] == [10, 5]

    tuna_lot = db_session.execute(
        select(InventoryLot).where(InventoryLot.product_id == catalog["tuna"].id)
    ).scalar_one()
    assert tuna_lot.quantity == 10
    assert tuna_lot.expiry_date == today + timedelta(days=180)
    assert tuna_lot.temperature_on_receipt == -18.5

    movements = db_session.execute(select(StockMovement).order_by(StockMovement.id)).scalars().all()
    assert [(m.type, m.quantity) for m in movements] == [
        (MovementType.receipt, 6),
        (MovementType.receipt, 4),
        (MovementType.receipt, 5),
    ]
    assert {m.reference_number for m in movements} == {"INB0001"}


def test_temperature_zone_mismatch_rolls_back(client, admin_headers, catalog, db_session):
    order = _create(client, admin_headers, catalog).json()
    tuna_item, milk_item = order["items"]

    r = client.post(
        f"/v1/inbound/{order['id']}/receive",
        json={
            "items": [
                {
                    "item_id": tuna_item["id"],
                    "received_quantity": 10,
                    "batch_number": "T-001",
                    "location_id": catalog["freezer_a"].id,
                },
                {
                    "item_id": milk_item["id"],
                    "received_quantity": 5,
                    "batch_number": "M-001",
                    "location_id": catalog["freezer_b"].id,
                },
            ]
        },
        headers=admin_headers,
    )

    assert r.status_code == 400
    assert "temperature zone" in r.json()["detail"]
    # la ligne thon déjà traitée est annulée avec le reste
    assert db_session.execute(select(InventoryLot)).first() is None
    assert db_session.execute(select(StockMovement)).first() is None
    assert client.get(f"/v1/inbound/{order['id']}", headers=admin_headers).json()["status"] == "PENDING"


def test_receive_rejects_item_from_another_order(client, admin_headers, catalog):
    first = _create(client, admin_headers, catalog).json()
    second = _create(client, admin_headers, catalog).json()

    r = client.post(
        f"/v1/inbound/{first['id']}/receive",
        json={
            "items": [
                {
                    "item_id": second["items"][0]["id"],
                    "received_quantity": 1,
                    "batch_number": "X",
                    "location_id": catalog["freezer_a"].id,
                }
            ]
        },
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert "not found in inbound order" in r.json()["detail"]


def test_receive_rejects_repeated_item(client, admin_headers, catalog, db_session):
    order = _create(client, admin_headers, catalog).json()
    line = {
        "item_id": order["items"][0]["id"],
        "received_quantity": 6,
        "batch_number": "T-01",
        "location_id": catalog["freezer_a"].id,
    }

    r = client.post(f"/v1/inbound/{order['id']}/receive", json={"items": [line, line]}, headers=admin_headers)

    assert r.status_code == 400
    assert r.json()["detail"] == "Validation error"
    assert db_session.execute(select(InventoryLot)).first() is None


def test_cancel_and_delete_rules(client, admin_headers, catalog):
    order = _create(client, admin_headers, catalog).json()

    r = client.patch(f"/v1/inbound/{order['id']}", json={"notes": "dock 3"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["notes"] == "dock 3"

    r = client.post(f"/v1/inbound/{order['id']}/cancel", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"

    # déjà annulée : ni annulation ni réception
    assert client.post(f"/v1/inbound/{order['id']}/cancel", headers=admin_headers).status_code == 400
    r = client.post(
        f"/v1/inbound/{order['id']}/receive",
        json={
            "items": [
                {
                    "item_id": order["items"][0]["id"],
                    "received_quantity": 1,
                    "batch_number": "X",
                    "location_id": catalog["freezer_a"].id,
                }
            ]
        },
        headers=admin_headers,
    )
    assert r.status_code == 400

    assert client.delete(f"/v1/inbound/{order['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/v1/inbound/{order['id']}", headers=admin_headers).status_code == 404


def test_completed_order_is_locked(client, admin_headers, catalog):
    order = client.post(
        "/v1/inbound",
        json={
            "supplier_id": catalog["supplier"].id,
            "items": [{"product_id": catalog["tuna"].id, "expected_quantity": 2}],
        },
        headers=admin_headers,
    ).json()
    client.post(
        f"/v1/inbound/{order['id']}/receive",
        json={
            "items": [
                {
                    "item_id": order["items"][0]["id"],
                    "received_quantity": 2,
                    "batch_number": "T-9",
                    "location_id": catalog["freezer_a"].id,
                }
            ]
        },
        headers=admin_headers,
    )

    assert client.patch(f"/v1/inbound/{order['id']}", json={"notes": "x"}, headers=admin_headers).status_code == 400
    assert client.delete(f"/v1/inbound/{order['id']}", headers=admin_headers).status_code == 400
    assert client.post(f"/v1/inbound/{order['id']}/cancel", headers=admin_headers).status_code == 400


def test_list_filters_by_status(client, admin_headers, catalog):
    first = _create(client, admin_headers, catalog).json()
    _create(client, admin_headers, catalog)
    client.post(f"/v1/inbound/{first['id']}/cancel", headers=admin_headers)

    r = client.get("/v1/inbound", params={"status": "PENDING"}, headers=admin_headers)

    assert r.status_code == 200
    assert [o["order_number"] for o in r.json()] == ["INB0002"]
