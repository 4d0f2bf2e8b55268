from __future__ import annotations

from datetime import date
from decimal import Decimal
import os
from pathlib import Path
import sys

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_categorization_endpoints.db")

from backend.app.db import Base, SessionLocal, engine
from backend.app.main import app
from backend.app.models import Categorization, Practice, Transaction


@pytest.fixture()
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session, monkeypatch):
    monkeypatch.delenv("ACCOUNT_FALLBACK_POLICY", raising=False)
    return TestClient(app)


def _seed(db_session):
    practice = Practice(name="Endpoint Practice", industry="dental")
    db_session.add(practice)
    db_session.flush()
    rows = [
        ("q1", "Henry Schein", "250.00", date(2024, 1, 2)),
        ("q2", "Amazon.com", "64.99", date(2024, 1, 3)),
        ("q3", "Netflix", "15.49", date(2024, 1, 4)),
        ("q4", "Corner Deli", "12.00", date(2024, 1, 5)),
    ]
    txns = {}
    for remote_id, vendor, amount, txn_date in rows:
        txn = Transaction(
            practice_id=practice.id,
            remote_txn_id=remote_id,
            date=txn_date,
            amount=Decimal(amount),
            vendor_name=vendor,
        )
        db_session.add(txn)
        db_session.flush()
        txns[remote_id] = txn.id
    db_session.commit()
    return practice.id, txns


def test_run_categorization_endpoint(client, db_session):
    practice_id, _ = _seed(db_session)

    response = client.post(f"/api/categorize/{practice_id}/run", headers={"X-User-Id": "user-1"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["categorized"] == 3
    assert payload["uncategorized"] == 1
    assert payload["failed"] == 0
    assert payload["message"] == "Categorized 3 transactions, 1 remain uncategorized"


def test_run_categorization_unknown_practice(client, db_session):
    response = client.post("/api/categorize/missing/run")
    assert response.status_code == 404


def test_manual_categorization_endpoint_and_history(client, db_session):
    practice_id, txns = _seed(db_session)
    client.post(f"/api/categorize/{practice_id}/run")

    response = client.put(
        f"/api/categorize/{practice_id}/transactions/{txns['q2']}",
        json={"category": "business"},
    )
    assert response.status_code == 200
    assert response.json()["source"] == "user"
    assert response.json()["confidence"] == 100

    history = client.get(f"/api/transactions/{practice_id}/{txns['q2']}/history")
    assert history.status_code == 200
    assert [h["category"] for h in history.json()] == ["business", "ambiguous"]


def test_manual_categorization_rejects_unknown_category(client, db_session):
    practice_id, txns = _seed(db_session)
    response = client.put(
        f"/api/categorize/{practice_id}/transactions/{txns['q1']}",
        json={"category": "maybe"},
    )
    assert response.status_code == 422


def test_batch_endpoint_rejects_foreign_ids(client, db_session):
    practice_id, txns = _seed(db_session)

    response = client.post(
        f"/api/categorize/{practice_id}/batch",
        json={"transaction_ids": [txns["q1"], "not-mine"], "category": "personal"},
    )
    assert response.status_code == 400
    assert db_session.query(Categorization).count() == 0

    ok = client.post(
        f"/api/categorize/{practice_id}/batch",
        json={"transaction_ids": [txns["q1"], txns["q4"]], "category": "personal"},
    )
    assert ok.status_code == 200
    assert ok.json() == {"categorized": 2, "category": "personal"}


def test_transaction_list_joins_latest_categorization(client, db_session):
    practice_id, txns = _seed(db_session)
    client.post(f"/api/categorize/{practice_id}/run")
    client.put(f"/api/categorize/{practice_id}/transactions/{txns['q2']}", json={"category": "personal"})

    response = client.get(f"/api/transactions/{practice_id}", params={"sort_by": "date", "sort_dir": "asc"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 4
    assert payload["total_pages"] == 1
    by_remote = {item["remote_txn_id"]: item for item in payload["items"]}
    assert by_remote["q1"]["category"] == "business"
    assert by_remote["q2"]["category"] == "personal"
    assert by_remote["q2"]["source"] == "user"
    assert by_remote["q4"]["category"] is None
    assert [item["remote_txn_id"] for item in payload["items"]] == ["q1", "q2", "q3", "q4"]


def test_transaction_list_filters(client, db_session):
    practice_id, _ = _seed(db_session)
    client.post(f"/api/categorize/{practice_id}/run")

    uncategorized = client.get(f"/api/transactions/{practice_id}", params={"category": "uncategorized"}).json()
    assert [i["remote_txn_id"] for i in uncategorized["items"]] == ["q4"]

    low = client.get(f"/api/transactions/{practice_id}", params={"max_confidence": 50}).json()
    assert [i["remote_txn_id"] for i in low["items"]] == ["q2"]

    vendor = client.get(f"/api/transactions/{practice_id}", params={"vendor": "schein"}).json()
    assert [i["remote_txn_id"] for i in vendor["items"]] == ["q1"]

    paged = client.get(f"/api/transactions/{practice_id}", params={"limit": 3, "page": 2}).json()
    assert paged["total"] == 4
    assert paged["total_pages"] == 2
    assert len(paged["items"]) == 1

    bad = client.get(f"/api/transactions/{practice_id}", params={"sort_by": "color"})
    assert bad.status_code == 400


def test_rule_crud_endpoints(client, db_session):
    practice_id, txns = _seed(db_session)

    created = client.post(
        f"/api/rules/{practice_id}",
        json={"match_type": "vendor", "match_value": "deli", "category": "personal", "priority": 2},
        headers={"X-User-Id": "owner"},
    )
    assert created.status_code == 201
    rule_id = created.json()["id"]

    bad_range = client.post(
        f"/api/rules/{practice_id}",
        json={"match_type": "amount_range", "match_value": "500-100", "category": "business"},
    )
    assert bad_range.status_code == 400

    updated = client.patch(f"/api/rules/{practice_id}/{rule_id}", json={"priority": 0})
    assert updated.status_code == 200
    assert updated.json()["priority"] == 0

    client.post(f"/api/categorize/{practice_id}/run")
    history = client.get(f"/api/transactions/{practice_id}/{txns['q4']}/history").json()
    assert history[0]["rule_id"] == rule_id

    assert client.delete(f"/api/rules/{practice_id}/{rule_id}").status_code == 204
    assert client.get(f"/api/rules/{practice_id}").json() == []
    assert client.delete(f"/api/rules/{practice_id}/{rule_id}").status_code == 404

    # Deleting a rule does not rewrite history.
    history = client.get(f"/api/transactions/{practice_id}/{txns['q4']}/history").json()
    assert history[0]["rule_id"] == rule_id

    audit = client.get(f"/audit/{practice_id}", params={"entity_type": "user_rule"}).json()
    assert [item["action"] for item in audit["items"]] == ["delete_rule", "update_rule", "create_rule"]


def test_industry_config_endpoints(client, db_session):
    practice_id, _ = _seed(db_session)

    templates = client.get("/api/industry/templates").json()
    assert {"slug": "dental", "name": "Dental Practice"} in templates

    config = client.get(f"/api/industry/{practice_id}/config").json()
    assert config["slug"] == "dental"

    config["vendors"]["business"] = ["Corner Deli"]
    saved = client.put(f"/api/industry/{practice_id}/config", json=config)
    assert saved.status_code == 200

    result = client.post(f"/api/categorize/{practice_id}/run").json()
    # Henry Schein is no longer a known supply vendor for this practice.
    assert result["categorized"] == 3
    listing = client.get(f"/api/transactions/{practice_id}", params={"vendor": "deli"}).json()
    assert listing["items"][0]["category"] == "business"

    invalid = dict(config, seasonality=[1.0])
    assert client.put(f"/api/industry/{practice_id}/config", json=invalid).status_code == 422
