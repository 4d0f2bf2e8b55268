import os
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_config.db")

from backend.app.api import config


def test_write_delay_derived_from_rate_limit(monkeypatch):
    monkeypatch.delenv("QBO_WRITE_DELAY_MS", raising=False)
    monkeypatch.delenv("QBO_RATE_LIMIT_PER_MINUTE", raising=False)
    assert config.write_delay_seconds() == pytest.approx(0.3)

    monkeypatch.setenv("QBO_RATE_LIMIT_PER_MINUTE", "250")
    assert config.write_delay_seconds() == pytest.approx(0.6)


def test_write_delay_override(monkeypatch):
    monkeypatch.setenv("QBO_WRITE_DELAY_MS", "1500")
    assert config.write_delay_seconds() == pytest.approx(1.5)


def test_bad_integer_env_raises(monkeypatch):
    monkeypatch.setenv("WRITE_BACK_MAX_BATCH", "lots")
    with pytest.raises(RuntimeError):
        config.write_back_max_batch()

    monkeypatch.setenv("WRITE_BACK_MAX_BATCH", "-1")
    with pytest.raises(RuntimeError):
        config.write_back_max_batch()


def test_defaults(monkeypatch):
    for name in ("WRITE_BACK_MAX_BATCH", "WRITE_BACK_HIGH_CONFIDENCE", "ACCOUNT_FALLBACK_POLICY"):
        monkeypatch.delenv(name, raising=False)
    assert config.write_back_max_batch() == 500
    assert config.write_back_high_confidence() == 90
    assert config.account_fallback_policy() == "off"


def test_fallback_policy_validation(monkeypatch):
    monkeypatch.setenv("ACCOUNT_FALLBACK_POLICY", "Unmatched")
    assert config.account_fallback_policy() == "unmatched"

    monkeypatch.setenv("ACCOUNT_FALLBACK_POLICY", "always")
    with pytest.raises(RuntimeError):
        config.account_fallback_policy()


def test_demo_mode(monkeypatch):
    monkeypatch.delenv("QBO_USE_STUB", raising=False)
    monkeypatch.delenv("QBO_CLIENT_ID", raising=False)
    assert config.qbo_demo_mode() is True

    monkeypatch.setenv("QBO_CLIENT_ID", "client")
    assert config.qbo_demo_mode() is False

    monkeypatch.setenv("QBO_USE_STUB", "TRUE")
    assert config.qbo_demo_mode() is True


def test_config_endpoint(monkeypatch):
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient

    from backend.app.main import app

    monkeypatch.delenv("QBO_CLIENT_ID", raising=False)
    monkeypatch.delenv("ACCOUNT_FALLBACK_POLICY", raising=False)
    monkeypatch.setenv("ALLOW_PRACTICE_DELETE", "1")

    payload = TestClient(app).get("/api/config").json()

    assert payload["qbo_demo_mode"] is True
    assert payload["allow_practice_delete"] is True
    assert payload["account_fallback_policy"] == "off"
