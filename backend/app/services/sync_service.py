from __future__ import annotations

import calendar
import logging
from datetime import date
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.api.deps import require_practice
from backend.app.integrations import AccountingClient, RemoteAccountingError
from backend.app.integrations.utils import upsert_transaction
from backend.app.services import audit_service
from backend.app.services.remote_connection_service import (
    accounting_client,
    mark_connection_error,
    mark_connection_synced,
)


logger = logging.getLogger(__name__)

DEFAULT_MONTHS_BACK = 12


def months_ago(anchor: date, months: int) -> date:
    year = anchor.year
    month = anchor.month - months
    while month <= 0:
        month += 12
        year -= 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def sync_transactions(
    db: Session,
    practice_id: str,
    *,
    months_back: int = DEFAULT_MONTHS_BACK,
    today: Optional[date] = None,
    client: Optional[AccountingClient] = None,
    actor_id: Optional[str] = None,
) -> Dict[str, int]:
    """
    Pull Purchase / Deposit / Transfer entities and upsert them by
    (practice_id, remote_txn_id). The entity type is stored on the row here,
    once, so write-back never has to guess it from the payload.
    """
    require_practice(db, practice_id)
    if months_back < 1:
        raise ValueError("months_back must be >= 1")
    since = months_ago(today or date.today(), months_back)
    with accounting_client(db, practice_id, client=client) as remote:
        try:
            remote_rows = remote.fetch_transactions(since=since)
        except RemoteAccountingError as exc:
            mark_connection_error(db, practice_id, exc.message)
            db.commit()
            raise

    synced = 0
    updated = 0
    errors = 0
    for remote in remote_rows:
        try:
            with db.begin_nested():
                inserted = upsert_transaction(db, practice_id=practice_id, remote=remote)
        except SQLAlchemyError as exc:
            errors += 1
            logger.warning(
                "sync upsert failed practice_id=%s remote_txn_id=%s: %s",
                practice_id,
                remote.remote_txn_id,
                exc,
            )
            continue
        if inserted:
            synced += 1
        else:
            updated += 1

    summary = {"synced": synced, "updated": updated, "errors": errors}
    mark_connection_synced(db, practice_id)
    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="qbo_sync",
        entity_type="practice",
        entity_id=practice_id,
        new_value={**summary, "since": since.isoformat()},
    )
    db.commit()
    logger.info("qbo sync practice_id=%s synced=%s updated=%s errors=%s", practice_id, synced, updated, errors)
    return summary
