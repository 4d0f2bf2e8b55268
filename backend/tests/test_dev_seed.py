from __future__ import annotations

import os
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_dev_seed.db")

from backend.app.db import Base, SessionLocal, engine
from backend.app.services.write_back_service import preview_write_back
from backend.scripts.dev_reset_db import seed_demo_practice


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


def test_seeded_demo_practice_has_write_back_candidates(db_session):
    practice = seed_demo_practice(db_session)

    preview = preview_write_back(db_session, practice.id)

    assert preview.total_transactions == 4
    assert set(preview.account_mappings) == {"business", "personal", "ambiguous"}
    # Amazon is low confidence and already sits in the account mapped for ambiguous.
    assert preview_write_back(db_session, practice.id, only_high_confidence=False).total_transactions == 4
