from datetime import timedelta

from sqlalchemy import func, select

from coldstore.app.db.models.models_v1 import InventoryLot, StockMovement


def _movement_count(db_session):
    return db_session.execute(select(func.count()).select_from(StockMovement)).scalar_one()


# ---------- reads ----------
def test_list_lots_hides_empty_by_default(client, employee_headers, catalog, make_lot):
    make_lot(catalog["tuna"], catalog["freezer_a"], "LATE", 5, expiry_in_days=40)
    make_lot(catalog["tuna"], catalog["freezer_a"], "EMPTY", 0, expiry_in_days=10)
    make_lot(catalog["tuna"], catalog["freezer_b"], "EARLY", 5, expiry_in_days=20)

    lots = client.get("/v1/inventory", headers=employee_headers).json()
    assert [l["batch_number"] for l in lots] == ["EARLY", "LATE"]
    assert lots[0]["location"]["code"] == "FZ-B"

    everything = client.get("/v1/inventory", params={"include_empty": True}, headers=employee_headers).json()
    assert len(everything) == 3


def test_summary_endpoint(client, employee_headers, catalog, make_lot, today):
    make_lot(catalog["tuna"], catalog["freezer_a"], "OLD", 2, expiry_in_days=-3)
    make_lot(catalog["tuna"], catalog["freezer_a"], "SOON", 4, expiry_in_days=2)

    r = client.get(f"/v1/inventory/summary/{catalog['tuna'].id}", headers=employee_headers)

    assert r.status_code == 200
    assert r.json() == {
        "product_id": catalog["tuna"].id,
        "on_hand": 6,
        "reserved": 0,
        "available": 6,
        "expired": 2,
        "near_expiry": 4,
        "next_expiry_date": (today - timedelta(days=3)).isoformat(),
    }
    assert client.get("/v1/inventory/summary/999", headers=employee_headers).status_code == 404


def test_expiring_and_low_stock(client, employee_headers, catalog, make_lot):
    make_lot(catalog["tuna"], catalog["freezer_a"], "OLD", 2, expiry_in_days=-3)
    make_lot(catalog["tuna"], catalog["freezer_a"], "SOON", 4, expiry_in_days=5)
    make_lot(catalog["tuna"], catalog["freezer_b"], "LATER", 1, expiry_in_days=90)

    r = client.get("/v1/inventory/expiring", params={"days": 7}, headers=employee_headers)
    assert [l["batch_number"] for l in r.json()] == ["OLD", "SOON"]

    r = client.get("/v1/inventory/expiring", params={"days": 7, "include_expired": False}, headers=employee_headers)
    assert [l["batch_number"] for l in r.json()] == ["SOON"]

    low = client.get("/v1/inventory/low-stock", headers=employee_headers).json()
    assert [(row["product"]["sku"], row["on_hand"], row["min_stock_level"]) for row in low] == [("TUNA-1KG", 7, 10)]


# ---------- adjust ----------
def test_adjust_lot(client, admin_headers, employee_headers, catalog, make_lot, db_session):
    lot = make_lot(catalog["tuna"], catalog["freezer_a"], "B1", 10, expiry_in_days=30)
    url = f"/v1/inventory/{lot.id}/adjust"

    assert client.post(url, json={"quantity_change": 2, "reason": "count"}, headers=employee_headers).status_code == 403

    r = client.post(url, json={"quantity_change": -4, "reason": "cycle count"}, headers=admin_headers)
    assert r.status_code == 200, r.text
    mv = r.json()
    assert (mv["type"], mv["quantity"], mv["from_location_id"], mv["to_location_id"]) == (
        "ADJUSTMENT",
        4,
        catalog["freezer_a"].id,
        None,
    )
    db_session.refresh(lot)
    assert lot.quantity == 6

    r = client.post(url, json={"quantity_change": -7, "reason": "oops"}, headers=admin_headers)
    assert r.status_code == 400
    assert "negative" in r.json()["detail"]

    r = client.post(url, json={"quantity_change": 0, "reason": "noop"}, headers=admin_headers)
    assert r.status_code == 400
    assert client.post("/v1/inventory/999/adjust", json={"quantity_change": 1, "reason": "x"}, headers=admin_headers).status_code == 404


def test_adjust_is_idempotent(client, admin_headers, catalog, make_lot, db_session):
    lot = make_lot(catalog["tuna"], catalog["freezer_a"], "B1", 10, expiry_in_days=30)
    headers = {**admin_headers, "Idempotency-Key": "adj-001"}
    body = {"quantity_change": 5, "reason": "found pallet"}

    first = client.post(f"/v1/inventory/{lot.id}/adjust", json=body, headers=headers)
    replay = client.post(f"/v1/inventory/{lot.id}/adjust", json=body, headers=headers)

    assert first.status_code == replay.status_code == 200
    assert replay.json()["id"] == first.json()["id"]
    assert replay.json()["idempotency_key"] == "adj-001"
    db_session.refresh(lot)
    assert lot.quantity == 15
    assert _movement_count(db_session) == 1


# ---------- transfer ----------
def test_transfer_moves_stock_into_destination_lot(client, employee_headers, catalog, make_lot, db_session):
    """
    GIVEN
    - lot B1 de 10 en FZ-A

    WHEN
    - transfert de 4 vers FZ-B

    THEN
    - FZ-A garde 6, un lot B1 de 4 apparaît en FZ-B avec la même expiration
    """
    lot = make_lot(catalog["tuna"], catalog["freezer_a"], "B1", 10, expiry_in_days=30)

    r = client.post(
        f"/v1/inventory/{lot.id}/transfer",
        json={"to_location_id": catalog["freezer_b"].id, "quantity": 4, "reason": "rebalance"},
        headers=employee_headers,
    )

    assert r.status_code == 200, r.text
    assert r.json()["type"] == "TRANSFER"
    db_session.refresh(lot)
    assert lot.quantity == 6
    target = db_session.execute(
        select(InventoryLot).where(InventoryLot.location_id == catalog["freezer_b"].id)
    ).scalar_one()
    assert (target.batch_number, target.quantity, target.expiry_date) == ("B1", 4, lot.expiry_date)


def test_transfer_rules(client, employee_headers, catalog, make_lot):
    lot = make_lot(catalog["tuna"], catalog["freezer_a"], "B1", 10, expiry_in_days=30)
    url = f"/v1/inventory/{lot.id}/transfer"

    same = client.post(url, json={"to_location_id": catalog["freezer_a"].id, "quantity": 1}, headers=employee_headers)
    assert same.status_code == 400

    wrong_zone = client.post(url, json={"to_location_id": catalog["chiller"].id, "quantity": 1}, headers=employee_headers)
    assert wrong_zone.status_code == 400
    assert "temperature zone" in wrong_zone.json()["detail"]

    too_much = client.post(url, json={"to_location_id": catalog["freezer_b"].id, "quantity": 11}, headers=employee_headers)
    assert too_much.status_code == 400

    unknown = client.post(url, json={"to_location_id": 999, "quantity": 1}, headers=employee_headers)
    assert unknown.status_code == 400


# ---------- dispose ----------
def test_dispose_expired_stock(client, employee_headers, catalog, make_lot, db_session):
    lot = make_lot(catalog["tuna"], catalog["freezer_a"], "OLD", 5, expiry_in_days=-1)
    url = f"/v1/inventory/{lot.id}/dispose"

    assert client.post(url, json={"quantity": 6, "reason": "expired"}, headers=employee_headers).status_code == 400

    r = client.post(url, json={"quantity": 5, "reason": "expired"}, headers=employee_headers)
    assert r.status_code == 200
    assert (r.json()["type"], r.json()["quantity"], r.json()["reason"]) == ("DISPOSAL", 5, "expired")
    db_session.refresh(lot)
    assert lot.quantity == 0


# ---------- movements ----------
def test_stock_movements_filters(client, admin_headers, catalog, make_lot):
    tuna_lot = make_lot(catalog["tuna"], catalog["freezer_a"], "T1", 10, expiry_in_days=30)
    milk_lot = make_lot(catalog["milk"], catalog["chiller"], "M1", 10, expiry_in_days=5)
    client.post(f"/v1/inventory/{tuna_lot.id}/adjust", json={"quantity_change": 1, "reason": "a"}, headers=admin_headers)
    client.post(f"/v1/inventory/{tuna_lot.id}/dispose", json={"quantity": 2, "reason": "b"}, headers=admin_headers)
    client.post(f"/v1/inventory/{milk_lot.id}/dispose", json={"quantity": 3, "reason": "c"}, headers=admin_headers)

    everything = client.get("/v1/stock-movements", headers=admin_headers).json()
    assert [m["reason"] for m in everything] == ["c", "b", "a"]

    tuna_only = client.get("/v1/stock-movements", params={"product_id": catalog["tuna"].id}, headers=admin_headers).json()
    assert [m["type"] for m in tuna_only] == ["DISPOSAL", "ADJUSTMENT"]

    disposals = client.get("/v1/stock-movements", params={"type": "DISPOSAL", "limit": 1}, headers=admin_headers).json()
    assert [m["reason"] for m in disposals] == ["c"]


# ---------- health & dashboard ----------
def test_health(client, catalog):
    r = client.get("/v1/health")

    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["counts"]["products"] == 2
    assert data["counts"]["locations"] == 3


def test_dashboard_counts(client, admin_headers, catalog, make_lot):
    make_lot(catalog["tuna"], catalog["freezer_a"], "OLD", 2, expiry_in_days=-3)
    make_lot(catalog["tuna"], catalog["freezer_a"], "SOON", 4, expiry_in_days=5)
    make_lot(catalog["milk"], catalog["chiller"], "M1", 20, expiry_in_days=9)
    client.post(
        "/v1/outbound",
        json={"customer_id": catalog["customer"].id, "items": [{"product_id": catalog["milk"].id, "requested_quantity": 3}]},
        headers=admin_headers,
    )

    r = client.get("/v1/dashboard", headers=admin_headers)

    assert r.status_code == 200
    assert r.json() == {
        "active_products": 2,
        "active_suppliers": 1,
        "active_customers": 1,
        "active_locations": 3,
        "pending_inbound": 0,
        "pending_outbound": 1,
        "expiring_lots": 1,
        "expired_lots": 1,
        "low_stock_products": 1,
    }
