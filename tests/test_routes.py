#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_routes
    ~~~~~~~~~~~~~~~~~

    HTTP surface under /v1/api, exercised through FastAPI's TestClient.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import os
import pytest
from decimal import Decimal

# Set TESTING before any rently imports
os.environ["TESTING"] = "true"

API = "/v1/api"


@pytest.fixture
def test_client():
    from fastapi.testclient import TestClient
    from rently.core import db
    from rently.app import app

    db.init()
    yield TestClient(app)
    db.Base.metadata.drop_all(bind=db.engine)

@pytest.fixture
def item_id(test_client):
    response = test_client.post(f"{API}/items", json={
        "owner_id": "lister-1",
        "name": "Projector",
        "category": "Electronics",
        "description": "1080p, HDMI",
        "price_amount": "100",
        "price_unit": "daily",
    })
    assert response.status_code == 201
    return response.json()["id"]

def rent(test_client, item_id, customer_id="cust-1", duration_days=3, deposit="200"):
    return test_client.post(f"{API}/items/{item_id}/rent", json={
        "customer_id": customer_id,
        "duration_days": duration_days,
        "deposit": deposit,
    })


def test_create_and_list_items(test_client, item_id):
    response = test_client.get(f"{API}/items")
    assert response.status_code == 200
    items = response.json()
    assert [i["id"] for i in items] == [item_id]
    assert items[0]["availability"] == "available"
    assert items[0]["current_rental"] is None

def test_get_missing_item(test_client):
    assert test_client.get(f"{API}/items/999").status_code == 404

def test_rent_item(test_client, item_id):
    response = rent(test_client, item_id)
    assert response.status_code == 200
    rental = response.json()
    assert Decimal(rental["total_amount"]) == Decimal("300")
    assert rental["customer_id"] == "cust-1"

    item = test_client.get(f"{API}/items/{item_id}").json()
    assert item["availability"] == "unavailable"
    assert item["current_rental"]["id"] == rental["id"]

def test_rent_errors(test_client, item_id):
    assert rent(test_client, 999).status_code == 404
    assert rent(test_client, item_id, duration_days=0).status_code == 400
    assert rent(test_client, item_id, duration_days=4_000_000).status_code == 422
    assert rent(test_client, item_id).status_code == 200
    assert rent(test_client, item_id, customer_id="cust-2").status_code == 409

def test_return_damaged_item(test_client, item_id):
    rent(test_client, item_id)
    response = test_client.post(f"{API}/items/{item_id}/return", json={
        "customer_id": "cust-1",
        "condition": "damaged",
        "comments": "bulb broken",
        "additional_charges": {"amount": "50", "reason": "bulb"},
    })
    assert response.status_code == 200
    receipt = response.json()
    assert Decimal(receipt["deposit_refund"]) == 0
    assert Decimal(receipt["total_charges"]) == Decimal("50")
    assert Decimal(receipt["final_amount"]) == Decimal("-50")
    assert receipt["days_late"] == 0
    assert receipt["customer_status"] == "warning"
    assert [s["reason"] for s in receipt["strikes"]] == ["damaged_item"]

    again = test_client.post(f"{API}/items/{item_id}/return", json={
        "customer_id": "cust-1", "condition": "good"})
    assert again.status_code == 409

    history = test_client.get(f"{API}/items/{item_id}/history").json()
    assert len(history) == 1
    assert history[0]["outcome"] == "completed"
    assert history[0]["condition"] == "damaged"

def test_return_by_wrong_customer(test_client, item_id):
    rent(test_client, item_id)
    response = test_client.post(f"{API}/items/{item_id}/return", json={
        "customer_id": "cust-2", "condition": "good"})
    assert response.status_code == 403

def test_return_with_unknown_condition(test_client, item_id):
    rent(test_client, item_id)
    response = test_client.post(f"{API}/items/{item_id}/return", json={
        "customer_id": "cust-1", "condition": "lost"})
    assert response.status_code == 422

def test_cancel_rental(test_client, item_id):
    assert test_client.post(f"{API}/items/{item_id}/cancel", json={}).status_code == 409
    rent(test_client, item_id)
    response = test_client.post(f"{API}/items/{item_id}/cancel", json={"notes": "recalled"})
    assert response.status_code == 200
    assert response.json()["outcome"] == "cancelled"

def test_behavior_strikes_and_resolution(test_client):
    fresh = test_client.get(f"{API}/customers/cust-7/behavior").json()
    assert fresh == {"customer_id": "cust-7", "status": "good", "total_strikes": 0, "strikes": []}

    for _ in range(4):
        response = test_client.post(f"{API}/customers/cust-7/strikes", json={
            "reason": "late_return", "item_id": 1, "severity": "minor"})
        assert response.status_code == 200
    assert response.json()["new_status"] == "warning"

    flagged = test_client.get(f"{API}/customers/flagged").json()
    assert [b["customer_id"] for b in flagged] == ["cust-7"]

    behavior = test_client.get(f"{API}/customers/cust-7/behavior").json()
    strike_id = behavior["strikes"][0]["id"]
    resolve_url = f"{API}/customers/cust-7/strikes/{strike_id}/resolve"

    response = test_client.post(resolve_url, json={"resolution_notes": "waived"})
    assert response.status_code == 200
    assert response.json() == {"customer_id": "cust-7", "new_status": "good", "total_strikes": 3}

    assert test_client.post(resolve_url, json={}).status_code == 409
    assert test_client.post(
        f"{API}/customers/cust-7/strikes/9999/resolve", json={}).status_code == 404
    assert test_client.post(
        f"{API}/customers/nobody/strikes/1/resolve", json={}).status_code == 404

def test_customer_rentals_and_strike_replay(test_client, item_id):
    rent(test_client, item_id)
    receipt = test_client.post(f"{API}/items/{item_id}/return", json={
        "customer_id": "cust-1", "condition": "damaged"}).json()

    rentals = test_client.get(f"{API}/customers/cust-1/rentals").json()
    assert [r["id"] for r in rentals] == [receipt["rental_id"]]

    replay = test_client.post(f"{API}/rentals/{receipt['rental_id']}/strikes")
    assert replay.status_code == 200
    assert replay.json() == []
    assert test_client.post(f"{API}/rentals/999/strikes").status_code == 404
