from __future__ import annotations

from datetime import date
from decimal import Decimal
import os
from pathlib import Path
import sys

import pytest
from sqlalchemy import func, select

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_delete_practice_cascades.db")

from backend.app.db import Base, SessionLocal, engine
from backend.app.main import app
from backend.app.models import (
    AccountMapping,
    AuditLog,
    Categorization,
    IndustryConfigRecord,
    Practice,
    RemoteConnection,
    Transaction,
    UserRule,
)
from backend.app.services.practice_service import create_practice, hard_delete_practice


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
def client(db_session):
    return TestClient(app)


def _seed_practice(db_session) -> Practice:
    practice = create_practice(db_session, name="Cascade Dental", industry="dental")
    txn = Transaction(
        practice_id=practice.id,
        remote_txn_id="q1",
        date=date(2024, 1, 2),
        amount=Decimal("10.00"),
        vendor_name="Henry Schein",
    )
    db_session.add(txn)
    db_session.flush()
    db_session.add_all(
        [
            Categorization(transaction_id=txn.id, category="business", confidence=100, source="rule"),
            UserRule(practice_id=practice.id, match_type="vendor", match_value="schein", category="business"),
            AccountMapping(
                practice_id=practice.id,
                category="business",
                remote_account_id="10",
                remote_account_name="Business Operating Expenses",
            ),
            RemoteConnection(practice_id=practice.id, realm_id="123", access_token="tok"),
            IndustryConfigRecord(practice_id=practice.id, industry_slug="dental", config_json={}),
            AuditLog(practice_id=practice.id, action="categorize", entity_type="transaction", entity_id=txn.id),
        ]
    )
    db_session.commit()
    return practice


def test_delete_practice_cascades_rows(db_session):
    practice = _seed_practice(db_session)

    assert hard_delete_practice(db_session, practice.id) is True

    for model in (Transaction, UserRule, AccountMapping, RemoteConnection, IndustryConfigRecord, AuditLog):
        count = db_session.execute(
            select(func.count()).select_from(model).where(model.practice_id == practice.id)
        ).scalar_one()
        assert count == 0
    assert db_session.execute(select(func.count()).select_from(Categorization)).scalar_one() == 0


def test_delete_missing_practice_returns_false(db_session):
    assert hard_delete_practice(db_session, "missing") is False


def test_create_practice_defaults_industry(db_session):
    practice = create_practice(db_session, name="  Plain  ")
    assert practice.name == "Plain"
    assert practice.industry == "dental"

    with pytest.raises(ValueError):
        create_practice(db_session, name="   ")


def test_practice_endpoints(client, db_session, monkeypatch):
    created = client.post("/api/practices", json={"name": "Spine Center", "industry": "Chiropractic"})
    assert created.status_code == 201
    practice_id = created.json()["id"]
    assert created.json()["industry"] == "chiropractic"

    assert client.get(f"/api/practices/{practice_id}").json()["name"] == "Spine Center"
    assert client.get("/api/practices/missing").status_code == 404

    monkeypatch.delenv("ALLOW_PRACTICE_DELETE", raising=False)
    assert client.delete(f"/api/practices/{practice_id}", params={"confirm": "true"}).status_code == 403

    monkeypatch.setenv("ALLOW_PRACTICE_DELETE", "1")
    assert client.delete(f"/api/practices/{practice_id}").status_code == 400
    deleted = client.delete(f"/api/practices/{practice_id}", params={"confirm": "true"})
    assert deleted.status_code == 200
    assert deleted.json() == {"deleted": True, "practice_id": practice_id}
    assert client.get(f"/api/practices/{practice_id}").status_code == 404
