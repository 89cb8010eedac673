import pytest
from sqlalchemy import select

from coldstore.app.db.models.core_types import MovementType
from coldstore.app.db.models.models_v1 import StockMovement

REFERENCE = "ORD0001 / DR-001 (AMENDED)"


@pytest.fixture
def shipped(client, admin_headers, catalog, make_lot):
    """
    Commande ORD0001 de 8 thon expédiée en DR-001 :
    EARLY (+5 j) 4 -> 0, MID (+20 j) 10 -> 6.
    """
    tuna = catalog["tuna"]
    lots = {
        "mid": make_lot(tuna, catalog["freezer_a"], "MID", 10, expiry_in_days=20),
        "early": make_lot(tuna, catalog["freezer_b"], "EARLY", 4, expiry_in_days=5),
    }
    order = client.post(
        "/v1/outbound",
        json={
            "customer_id": catalog["customer"].id,
            "notes": "rush",
            "items": [{"product_id": tuna.id, "requested_quantity": 8, "unit_price": "2.5"}],
        },
        headers=admin_headers,
    ).json()
    r = client.post(
        f"/v1/outbound/{order['id']}/dispatch",
        json={"prepared_by": "Eddie", "items": [{"item_id": order["items"][0]["id"], "picked_quantity": 8}]},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    return {"order": r.json(), "lots": lots}


def _amend(client, headers, order, new_picked, notes="customer refused", **extra):
    item = {"item_id": order["items"][0]["id"], "new_picked_quantity": new_picked}
    item.update(extra)
    return client.post(
        f"/v1/outbound/{order['id']}/amend",
        json={"items": [item], "amendment_notes": notes},
        headers=headers,
    )


def _movements(db_session, type):
    return db_session.execute(
        select(StockMovement).where(StockMovement.type == type).order_by(StockMovement.id)
    ).scalars().all()


def test_lower_pick_returns_stock_to_original_lots(client, admin_headers, shipped, db_session):
    """
    GIVEN
    - 8 unités expédiées (4 EARLY + 4 MID)

    WHEN
    - amendement à 5 (le client refuse 3 unités)

    THEN
    - 3 unités reviennent dans MID (le lot qui expire le plus tard)
    - un mouvement RETURN de 3, la ligne passe à 5
    """
    r = _amend(client, admin_headers, shipped["order"], 5, notes="customer refused 3", new_weight_kilos="5")

    assert r.status_code == 200, r.text
    data = r.json()
    item = data["items"][0]
    assert item["picked_quantity"] == 5
    assert item["weight_kilos"] == 5.0
    assert item["total_amount"] == 12.5
    assert data["status"] == "DISPATCHED"
    assert data["notes"].startswith("rush\n\n[AMENDMENT - ")
    assert "Amended by: Alice Admin" in data["notes"]
    assert data["notes"].endswith("Notes: customer refused 3")

    mid, early = shipped["lots"]["mid"], shipped["lots"]["early"]
    db_session.refresh(mid)
    db_session.refresh(early)
    assert (early.quantity, mid.quantity) == (0, 9)

    returns = _movements(db_session, MovementType.return_)
    assert [(m.batch_number, m.quantity, m.to_location_id) for m in returns] == [("MID", 3, mid.location_id)]
    assert returns[0].reference_number == REFERENCE
    assert returns[0].reason == "Amendment - items returned"


def test_return_beyond_one_lot_spills_into_earlier_lot(client, admin_headers, shipped, db_session):
    r = _amend(client, admin_headers, shipped["order"], 2)

    assert r.status_code == 200, r.text
    mid, early = shipped["lots"]["mid"], shipped["lots"]["early"]
    db_session.refresh(mid)
    db_session.refresh(early)
    assert (early.quantity, mid.quantity) == (2, 10)
    assert [(m.batch_number, m.quantity) for m in _movements(db_session, MovementType.return_)] == [
        ("MID", 4),
        ("EARLY", 2),
    ]


def test_higher_pick_takes_more_stock_fefo(client, admin_headers, shipped, db_session):
    r = _amend(client, admin_headers, shipped["order"], 10, reason="short shipped")

    assert r.status_code == 200, r.text
    assert r.json()["items"][0]["picked_quantity"] == 10

    mid = shipped["lots"]["mid"]
    db_session.refresh(mid)
    assert mid.quantity == 4

    picks = _movements(db_session, MovementType.pick)
    extra = [m for m in picks if m.reference_number == REFERENCE]
    assert [(m.batch_number, m.quantity, m.reason) for m in extra] == [("MID", 2, "short shipped")]


def test_higher_pick_respects_other_reservations(client, admin_headers, shipped, catalog, db_session):
    # 6 en stock, 5 réservés par une autre commande : 1 disponible
    r = client.post(
        "/v1/outbound",
        json={"customer_id": catalog["customer"].id, "items": [{"product_id": catalog["tuna"].id, "requested_quantity": 5}]},
        headers=admin_headers,
    )
    assert r.status_code == 201

    r = _amend(client, admin_headers, shipped["order"], 10)

    assert r.status_code == 400
    assert "Insufficient stock" in r.json()["detail"]
    mid = shipped["lots"]["mid"]
    db_session.refresh(mid)
    assert mid.quantity == 6


def test_unchanged_quantity_only_updates_details(client, admin_headers, shipped, db_session):
    r = _amend(client, admin_headers, shipped["order"], 8, new_box_quantity=2)

    assert r.status_code == 200
    assert r.json()["items"][0]["box_quantity"] == 2
    assert _movements(db_session, MovementType.return_) == []
    assert len(_movements(db_session, MovementType.pick)) == 2


def test_amend_requires_dispatched_order(client, admin_headers, catalog, make_lot):
    make_lot(catalog["tuna"], catalog["freezer_a"], "B1", 10, expiry_in_days=30)
    order = client.post(
        "/v1/outbound",
        json={"customer_id": catalog["customer"].id, "items": [{"product_id": catalog["tuna"].id, "requested_quantity": 2}]},
        headers=admin_headers,
    ).json()

    r = _amend(client, admin_headers, order, 1)

    assert r.status_code == 400
    assert r.json()["detail"] == "Only dispatched orders can be amended"


def test_amend_requires_manager_and_notes(client, admin_headers, employee_headers, shipped):
    assert _amend(client, employee_headers, shipped["order"], 5).status_code == 403

    r = _amend(client, admin_headers, shipped["order"], 5, notes="")
    assert r.status_code == 400
    assert r.json()["detail"] == "Validation error"


def test_failed_line_undoes_earlier_lines(client, admin_headers, shipped, db_session):
    """
    GIVEN
    - 8 unités expédiées (4 EARLY + 4 MID)

    WHEN
    - ligne 1 : retour de 3 unités (écrit un RETURN)
    - ligne 2 : item inconnu, rejetée

    THEN
    - 400 et ni le stock, ni les mouvements, ni la commande n'ont bougé
    """
    order = shipped["order"]
    r = client.post(
        f"/v1/outbound/{order['id']}/amend",
        json={
            "items": [
                {"item_id": order["items"][0]["id"], "new_picked_quantity": 5},
                {"item_id": 999, "new_picked_quantity": 1},
            ],
            "amendment_notes": "partial return",
        },
        headers=admin_headers,
    )

    assert r.status_code == 400
    assert r.json()["detail"] == "Item 999 not found in order"
    mid, early = shipped["lots"]["mid"], shipped["lots"]["early"]
    db_session.refresh(mid)
    db_session.refresh(early)
    assert (early.quantity, mid.quantity) == (0, 6)
    assert _movements(db_session, MovementType.return_) == []
    after = client.get(f"/v1/outbound/{order['id']}", headers=admin_headers).json()
    assert after["items"][0]["picked_quantity"] == 8
    assert after["notes"] == "rush"


def test_amend_rejects_repeated_item(client, admin_headers, shipped, db_session):
    order = shipped["order"]
    line = {"item_id": order["items"][0]["id"], "new_picked_quantity": 5}

    r = client.post(
        f"/v1/outbound/{order['id']}/amend",
        json={"items": [line, line], "amendment_notes": "twice"},
        headers=admin_headers,
    )

    assert r.status_code == 400
    assert r.json()["detail"] == "Validation error"
    assert _movements(db_session, MovementType.return_) == []
