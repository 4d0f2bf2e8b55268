"""
Push local categorizations back to the remote accounting system.

preview  -> which transactions would move to a different remote account
execute  -> read (SyncToken) / sparse update / local refresh, one item at a time
history  -> past batch summaries from the audit log

Execution is strictly sequential in caller order with a fixed pause after every
remote write. A failed item is final for the run: nothing is retried, the next
preview simply proposes it again if it is still out of date.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.api.config import write_back_high_confidence, write_back_max_batch, write_delay_seconds
from backend.app.api.deps import require_practice
from backend.app.domain.contracts import (
    CATEGORIES,
    WriteBackErrorContract,
    WriteBackItemContract,
    WriteBackPreviewContract,
    WriteBackResultContract,
)
from backend.app.integrations import AccountingClient, RemoteAccountingError, RemoteAuthError
from backend.app.models import AuditLog, Transaction
from backend.app.services import audit_service
from backend.app.services.account_mapping_service import mapping_by_category
from backend.app.services.categorize_service import latest_categorization, latest_categorizations
from backend.app.services.remote_connection_service import accounting_client


logger = logging.getLogger(__name__)

ITEM_ACTION = "qbo_write_back"
BATCH_ACTION = "qbo_write_back_batch"
HISTORY_LIMIT = 50
UNASSIGNED_ACCOUNT_LABEL = "Uncategorized"


# -------------------------
# Preview
# -------------------------

def preview_write_back(
    db: Session,
    practice_id: str,
    *,
    since_date: Optional[date] = None,
    only_high_confidence: bool = True,
    categories: Optional[Sequence[str]] = None,
) -> WriteBackPreviewContract:
    require_practice(db, practice_id)
    if categories:
        unknown = [c for c in categories if c not in CATEGORIES]
        if unknown:
            raise ValueError(f"unknown categories: {', '.join(unknown)}")

    mappings = mapping_by_category(db, practice_id)
    if not mappings:
        return WriteBackPreviewContract(items=[], total_transactions=0, account_mappings={})

    display = {category: m.remote_account_name for category, m in mappings.items()}
    threshold = write_back_high_confidence()

    query = select(Transaction).where(Transaction.practice_id == practice_id)
    if since_date:
        query = query.where(Transaction.date >= since_date)
    txns = db.execute(query.order_by(Transaction.date.desc(), Transaction.id.asc())).scalars().all()
    latest = latest_categorizations(db, [t.id for t in txns])

    items: List[WriteBackItemContract] = []
    for txn in txns:
        cat = latest.get(txn.id)
        if cat is None:
            continue
        if only_high_confidence and cat.confidence < threshold:
            continue
        if categories and cat.category not in categories:
            continue
        mapping = mappings.get(cat.category)
        if mapping is None:
            continue
        # Already in its target state: never re-proposed.
        if txn.account_ref == mapping.remote_account_name:
            continue

        items.append(
            WriteBackItemContract(
                transaction_id=txn.id,
                remote_txn_id=txn.remote_txn_id,
                remote_entity_type=txn.remote_entity_type,
                current_account_ref=txn.account_ref or UNASSIGNED_ACCOUNT_LABEL,
                target_account_ref=mapping.remote_account_name,
                target_account_id=mapping.remote_account_id,
                category=cat.category,
                confidence=cat.confidence,
                amount=float(txn.amount),
                vendor_name=txn.vendor_name,
                date=txn.date,
            )
        )

    return WriteBackPreviewContract(items=items, total_transactions=len(items), account_mappings=display)


# -------------------------
# Execute
# -------------------------

def _validate_ids(transaction_ids: Sequence[str]) -> List[str]:
    ids = [str(t) for t in (transaction_ids or [])]
    if not ids:
        raise ValueError("transaction_ids must not be empty")
    max_batch = write_back_max_batch()
    if len(ids) > max_batch:
        raise ValueError(f"at most {max_batch} transactions per write-back batch")
    if any(not t.strip() for t in ids):
        raise ValueError("transaction_ids must not contain blank ids")
    return ids


def execute_write_back(
    db: Session,
    practice_id: str,
    transaction_ids: Sequence[str],
    *,
    actor_id: Optional[str] = None,
    client: Optional[AccountingClient] = None,
    sleep: Callable[[float], None] = time.sleep,
    delay_seconds: Optional[float] = None,
    deadline: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> WriteBackResultContract:
    """
    Process ids in the given order; always returns succeeded + failed == len(ids).

    deadline is a value of clock(); it is only checked between items, so an
    item that has started always finishes its read/write cycle.
    """
    require_practice(db, practice_id)
    ids = _validate_ids(transaction_ids)
    with accounting_client(db, practice_id, client=client) as remote:
        return _execute_items(
            db,
            practice_id,
            ids,
            client=remote,
            actor_id=actor_id,
            sleep=sleep,
            delay_seconds=delay_seconds,
            deadline=deadline,
            clock=clock,
        )


def _execute_items(
    db: Session,
    practice_id: str,
    ids: List[str],
    *,
    client: AccountingClient,
    actor_id: Optional[str],
    sleep: Callable[[float], None],
    delay_seconds: Optional[float],
    deadline: Optional[float],
    clock: Callable[[], float],
) -> WriteBackResultContract:
    if delay_seconds is None:
        delay_seconds = write_delay_seconds()

    mappings = mapping_by_category(db, practice_id)

    succeeded = 0
    errors: List[WriteBackErrorContract] = []
    auth_failure: Optional[str] = None

    def fail(txn_id: str, message: str) -> None:
        errors.append(WriteBackErrorContract(transaction_id=txn_id, error=message))

    for txn_id in ids:
        if auth_failure is not None:
            fail(txn_id, f"Not attempted: remote authentication failed ({auth_failure})")
            continue
        if deadline is not None and clock() >= deadline:
            fail(txn_id, "Not attempted: batch deadline exceeded")
            continue

        txn = db.execute(
            select(Transaction).where(Transaction.id == txn_id, Transaction.practice_id == practice_id)
        ).scalar_one_or_none()
        if txn is None:
            fail(txn_id, "Transaction not found")
            continue

        cat = latest_categorization(db, txn.id)
        if cat is None:
            fail(txn_id, "No categorization found")
            continue

        mapping = mappings.get(cat.category)
        if mapping is None:
            fail(txn_id, f"No remote account mapping for category: {cat.category}")
            continue

        entity_type = txn.remote_entity_type
        try:
            entity = client.read_entity(entity_type, txn.remote_txn_id)
        except RemoteAuthError as exc:
            auth_failure = exc.message
            fail(txn_id, f"Remote authentication failed: {exc.message}")
            logger.warning("write-back auth failure practice_id=%s, aborting batch: %s", practice_id, exc.message)
            continue
        except RemoteAccountingError as exc:
            fail(txn_id, f"Could not read {entity_type.value} {txn.remote_txn_id}: {exc.message}")
            continue

        changes = {
            "AccountRef": {"value": mapping.remote_account_id, "name": mapping.remote_account_name},
        }
        try:
            client.sparse_update(entity_type, txn.remote_txn_id, sync_token=entity.sync_token, changes=changes)
        except RemoteAuthError as exc:
            auth_failure = exc.message
            fail(txn_id, f"Remote authentication failed: {exc.message}")
            logger.warning("write-back auth failure practice_id=%s, aborting batch: %s", practice_id, exc.message)
            continue
        except RemoteAccountingError as exc:
            fail(txn_id, exc.message)
            logger.warning(
                "write-back rejected practice_id=%s txn_id=%s remote_txn_id=%s: %s",
                practice_id,
                txn_id,
                txn.remote_txn_id,
                exc.message,
            )
            continue
        finally:
            sleep(delay_seconds)

        old_account_ref = txn.account_ref
        try:
            txn.account_ref = mapping.remote_account_name
            db.add(txn)
            audit_service.log_audit_event(
                db,
                practice_id=practice_id,
                actor_id=actor_id,
                action=ITEM_ACTION,
                entity_type="transaction",
                entity_id=txn_id,
                old_value={"account_ref": old_account_ref},
                new_value={
                    "account_ref": mapping.remote_account_name,
                    "remote_account_id": mapping.remote_account_id,
                    "remote_txn_id": txn.remote_txn_id,
                    "remote_entity_type": entity_type.value,
                    "category": cat.category,
                },
            )
            db.commit()
        except SQLAlchemyError as exc:
            # The remote write stands; the next sync refreshes account_ref.
            db.rollback()
            fail(txn_id, f"Remote account updated but local record could not be saved: {exc}")
            logger.warning("write-back local update failed practice_id=%s txn_id=%s: %s", practice_id, txn_id, exc)
            continue

        succeeded += 1

    result = WriteBackResultContract(succeeded=succeeded, failed=len(errors), errors=errors)
    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action=BATCH_ACTION,
        entity_type="write_back_batch",
        new_value={
            "requested": len(ids),
            "succeeded": result.succeeded,
            "failed": result.failed,
            "errors": [e.model_dump() for e in errors],
            "aborted": auth_failure is not None,
        },
    )
    db.commit()
    logger.info(
        "write-back batch practice_id=%s requested=%s succeeded=%s failed=%s",
        practice_id,
        len(ids),
        result.succeeded,
        result.failed,
    )
    return result


# -------------------------
# History
# -------------------------

def write_back_history(db: Session, practice_id: str, *, limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
    require_practice(db, practice_id)
    rows = (
        db.execute(
            select(AuditLog)
            .where(AuditLog.practice_id == practice_id, AuditLog.action == BATCH_ACTION)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return [audit_service.serialize_audit_row(row) for row in rows]
