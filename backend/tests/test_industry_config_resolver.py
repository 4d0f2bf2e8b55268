from __future__ import annotations

import os
from pathlib import Path
import sys

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import select

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_industry_config_resolver.db")

from backend.app.db import Base, SessionLocal, engine
from backend.app.industries import STATIC_CONFIGS, general_config
from backend.app.models import AuditLog, IndustryConfigRecord, Practice
from backend.app.services import industry_config_service


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


def _create_practice(db_session, industry):
    practice = Practice(name="Test Practice", industry=industry)
    db_session.add(practice)
    db_session.commit()
    db_session.refresh(practice)
    return practice


def _custom_config(slug: str = "dental", vendor: str = "Acme Dental Supply"):
    data = STATIC_CONFIGS["dental"].model_dump(mode="json")
    data["slug"] = slug
    data["vendors"]["business"] = [vendor]
    return data


def test_static_template_for_practice_industry(db_session):
    practice = _create_practice(db_session, "chiropractic")
    config = industry_config_service.resolve_config(db_session, practice.id)
    assert config.slug == "chiropractic"


def test_slug_lookup_is_case_insensitive(db_session):
    practice = _create_practice(db_session, "Veterinary ")
    assert industry_config_service.resolve_config(db_session, practice.id).slug == "veterinary"


def test_unknown_industry_falls_back_to_general(db_session):
    practice = _create_practice(db_session, "optometry")
    config = industry_config_service.resolve_config(db_session, practice.id)
    assert config == general_config


def test_global_template_row_serves_unknown_static_slug(db_session):
    practice = _create_practice(db_session, "optometry")
    db_session.add(
        IndustryConfigRecord(
            practice_id=None,
            industry_slug="optometry",
            config_json=_custom_config(slug="optometry", vendor="Vision Source"),
        )
    )
    db_session.commit()

    config = industry_config_service.resolve_config(db_session, practice.id)
    assert config.slug == "optometry"
    assert config.vendors.business == ["Vision Source"]


def test_practice_override_wins(db_session):
    practice = _create_practice(db_session, "dental")
    db_session.add(
        IndustryConfigRecord(
            practice_id=practice.id,
            industry_slug="dental",
            config_json=_custom_config(),
            is_custom=True,
        )
    )
    db_session.commit()

    config = industry_config_service.resolve_config(db_session, practice.id)
    assert config.vendors.business == ["Acme Dental Supply"]


def test_override_of_other_practice_is_ignored(db_session):
    mine = _create_practice(db_session, "dental")
    other = _create_practice(db_session, "dental")
    db_session.add(
        IndustryConfigRecord(practice_id=other.id, industry_slug="dental", config_json=_custom_config())
    )
    db_session.commit()

    assert industry_config_service.resolve_config(db_session, mine.id) == STATIC_CONFIGS["dental"]


def test_invalid_override_raises(db_session):
    practice = _create_practice(db_session, "dental")
    broken = _custom_config()
    broken["seasonality"] = [1.0, 1.0]
    db_session.add(IndustryConfigRecord(practice_id=practice.id, industry_slug="dental", config_json=broken))
    db_session.commit()

    with pytest.raises(ValidationError):
        industry_config_service.resolve_config(db_session, practice.id)


def test_missing_practice_is_404(db_session):
    with pytest.raises(HTTPException) as exc:
        industry_config_service.resolve_config(db_session, "missing")
    assert exc.value.status_code == 404


def test_save_override_upserts_and_audits(db_session):
    practice = _create_practice(db_session, "dental")
    first = STATIC_CONFIGS["dental"].model_copy(update={"name": "Custom Dental"})

    industry_config_service.save_practice_override(db_session, practice.id, first, actor_id="u1")
    second = first.model_copy(update={"name": "Custom Dental v2"})
    industry_config_service.save_practice_override(db_session, practice.id, second, actor_id="u1")

    rows = db_session.execute(
        select(IndustryConfigRecord).where(IndustryConfigRecord.practice_id == practice.id)
    ).scalars().all()
    assert len(rows) == 1
    assert rows[0].is_custom is True
    assert industry_config_service.resolve_config(db_session, practice.id).name == "Custom Dental v2"

    audits = db_session.execute(
        select(AuditLog).where(AuditLog.action == "update_industry_config").order_by(AuditLog.created_at.asc())
    ).scalars().all()
    assert len(audits) == 2
    assert audits[0].old_value is None
    assert audits[1].old_value["name"] == "Custom Dental"


def test_templates_list_static_registry():
    slugs = {t["slug"] for t in industry_config_service.list_templates()}
    assert slugs == {"dental", "chiropractic", "veterinary", "general"}
