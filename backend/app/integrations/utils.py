from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.domain.contracts import RemoteEntityType
from backend.app.integrations.base import RemoteEntity, RemoteTransaction
from backend.app.models import Transaction


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ref_name(payload: Dict[str, Any], key: str) -> Optional[str]:
    ref = payload.get(key)
    if isinstance(ref, dict):
        return ref.get("name") or None
    return None


def _ref_value(payload: Dict[str, Any], key: str) -> Optional[str]:
    ref = payload.get(key)
    if isinstance(ref, dict) and ref.get("value") is not None:
        return str(ref["value"])
    return None


def parse_remote_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_remote_amount(payload: Dict[str, Any]) -> Decimal:
    raw = payload.get("TotalAmt")
    if raw is None:
        raw = payload.get("Amount", 0)
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def remote_account_label(payload: Dict[str, Any]) -> Optional[str]:
    # Purchases carry AccountRef; deposits and transfers name their accounts differently.
    return (
        _ref_name(payload, "AccountRef")
        or _ref_name(payload, "DepositToAccountRef")
        or _ref_name(payload, "FromAccountRef")
    )


def remote_description(payload: Dict[str, Any]) -> Optional[str]:
    note = payload.get("PrivateNote")
    if note:
        return note
    lines = payload.get("Line")
    if isinstance(lines, list) and lines and isinstance(lines[0], dict):
        return lines[0].get("Description") or None
    return None


def entity_from_payload(entity_type: RemoteEntityType, payload: Dict[str, Any]) -> RemoteEntity:
    return RemoteEntity(
        entity_type=entity_type,
        id=str(payload.get("Id")),
        sync_token=str(payload.get("SyncToken", "0")),
        account_ref_id=_ref_value(payload, "AccountRef"),
        account_ref_name=_ref_name(payload, "AccountRef"),
        raw=payload,
    )


def transaction_from_payload(entity_type: RemoteEntityType, payload: Dict[str, Any]) -> Optional[RemoteTransaction]:
    """Flatten one QBO entity. Returns None when it lacks an Id or a usable TxnDate."""
    remote_id = payload.get("Id")
    txn_date = parse_remote_date(payload.get("TxnDate"))
    if remote_id is None or txn_date is None:
        return None
    return RemoteTransaction(
        entity_type=entity_type,
        remote_txn_id=str(remote_id),
        date=txn_date,
        amount=parse_remote_amount(payload),
        vendor_name=_ref_name(payload, "EntityRef"),
        description=remote_description(payload),
        account_ref=remote_account_label(payload),
        raw=payload,
    )


def upsert_transaction(
    db: Session,
    *,
    practice_id: str,
    remote: RemoteTransaction,
) -> bool:
    """
    Insert or refresh one synced transaction keyed by (practice_id, remote_txn_id).
    Returns True when a new row was inserted.
    """
    existing = db.execute(
        select(Transaction).where(
            Transaction.practice_id == practice_id,
            Transaction.remote_txn_id == remote.remote_txn_id,
        )
    ).scalar_one_or_none()

    if existing is not None:
        existing.remote_entity_type = remote.entity_type
        existing.date = remote.date
        existing.amount = remote.amount
        existing.vendor_name = remote.vendor_name
        existing.description = remote.description
        existing.account_ref = remote.account_ref
        existing.raw_json = remote.raw
        existing.synced_at = utcnow()
        db.add(existing)
        db.flush()
        return False

    try:
        with db.begin_nested():
            db.add(
                Transaction(
                    practice_id=practice_id,
                    remote_txn_id=remote.remote_txn_id,
                    remote_entity_type=remote.entity_type,
                    date=remote.date,
                    amount=remote.amount,
                    vendor_name=remote.vendor_name,
                    description=remote.description,
                    account_ref=remote.account_ref,
                    raw_json=remote.raw,
                    synced_at=utcnow(),
                )
            )
            db.flush()
    except IntegrityError:
        # Lost a race with a concurrent sync; the other writer's row stands.
        return False
    return True
