from __future__ import annotations

import os


FALLBACK_POLICIES = ("off", "unmatched")

# Two remote calls per write-back item (read + sparse update).
CALLS_PER_WRITE_BACK_ITEM = 2
WRITE_DELAY_SAFETY_MARGIN = 1.25


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got '{raw}'.") from exc
    if value < 0:
        raise RuntimeError(f"{name} must not be negative.")
    return value


def qbo_demo_mode() -> bool:
    """Use the in-memory QBO stub when explicitly asked, or when no app credentials exist."""
    if os.getenv("QBO_USE_STUB", "").lower() == "true":
        return True
    return not os.getenv("QBO_CLIENT_ID")


def qbo_rate_limit_per_minute() -> int:
    return _int_env("QBO_RATE_LIMIT_PER_MINUTE", 500) or 500


def write_delay_seconds() -> float:
    """
    Fixed pause after every remote write. QBO_WRITE_DELAY_MS wins when set;
    otherwise derived from the per-minute ceiling: 2 calls/item * 60s / 500 * 1.25 = 0.3s.
    """
    if os.getenv("QBO_WRITE_DELAY_MS"):
        return _int_env("QBO_WRITE_DELAY_MS", 0) / 1000.0
    per_call = 60.0 / qbo_rate_limit_per_minute()
    return per_call * CALLS_PER_WRITE_BACK_ITEM * WRITE_DELAY_SAFETY_MARGIN


def write_back_max_batch() -> int:
    return _int_env("WRITE_BACK_MAX_BATCH", 500)


def write_back_high_confidence() -> int:
    return _int_env("WRITE_BACK_HIGH_CONFIDENCE", 90)


def account_fallback_policy() -> str:
    """
    off       -> only the rule engine categorizes (default)
    unmatched -> consult the current remote account label when the rule engine returns None
    """
    policy = (os.getenv("ACCOUNT_FALLBACK_POLICY") or "off").strip().lower()
    if policy not in FALLBACK_POLICIES:
        raise RuntimeError(f"ACCOUNT_FALLBACK_POLICY must be one of {FALLBACK_POLICIES}, got '{policy}'.")
    return policy


def allow_practice_delete() -> bool:
    return os.getenv("ALLOW_PRACTICE_DELETE") == "1"
