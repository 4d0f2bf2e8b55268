from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.config import qbo_demo_mode
from backend.app.integrations import AccountingClient, get_accounting_client
from backend.app.models import RemoteConnection, utcnow


def get_connection(db: Session, practice_id: str) -> Optional[RemoteConnection]:
    return db.execute(
        select(RemoteConnection).where(RemoteConnection.practice_id == practice_id)
    ).scalar_one_or_none()


def require_accounting_client(db: Session, practice_id: str) -> AccountingClient:
    """
    Demo mode always succeeds with the stub. Otherwise a usable connection
    (realm + token) is required; without one the operation cannot proceed.
    """
    if qbo_demo_mode():
        return get_accounting_client(realm_id=None, access_token=None)

    connection = get_connection(db, practice_id)
    if not connection or not connection.realm_id or not connection.access_token:
        raise HTTPException(409, "no remote accounting connection configured for practice")
    return get_accounting_client(realm_id=connection.realm_id, access_token=connection.access_token)


@contextmanager
def accounting_client(
    db: Session,
    practice_id: str,
    *,
    client: Optional[AccountingClient] = None,
) -> Iterator[AccountingClient]:
    """Yield a caller-supplied client as is; a client built here is closed on exit."""
    if client is not None:
        yield client
        return
    owned = require_accounting_client(db, practice_id)
    try:
        yield owned
    finally:
        owned.close()


def mark_connection_error(db: Session, practice_id: str, error: str) -> None:
    connection = get_connection(db, practice_id)
    if connection is None:
        return
    connection.status = "error"
    connection.last_error = error[:2000]
    connection.updated_at = utcnow()
    db.add(connection)


def mark_connection_synced(db: Session, practice_id: str) -> None:
    connection = get_connection(db, practice_id)
    if connection is None:
        return
    connection.status = "connected"
    connection.last_sync_at = utcnow()
    connection.last_error = None
    connection.updated_at = utcnow()
    db.add(connection)
