from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import require_practice
from backend.app.domain.contracts import CATEGORIES
from backend.app.integrations import RemoteAccount
from backend.app.models import AccountMapping
from backend.app.services import audit_service
from backend.app.services.remote_connection_service import accounting_client


def get_mappings(db: Session, practice_id: str) -> List[AccountMapping]:
    require_practice(db, practice_id)
    return (
        db.execute(
            select(AccountMapping)
            .where(AccountMapping.practice_id == practice_id)
            .order_by(AccountMapping.category.asc())
        )
        .scalars()
        .all()
    )


def mapping_by_category(db: Session, practice_id: str) -> Dict[str, AccountMapping]:
    return {m.category: m for m in get_mappings(db, practice_id)}


def _mapping_state(rows: Sequence[AccountMapping]) -> Dict[str, Any]:
    return {
        m.category: {"remote_account_id": m.remote_account_id, "remote_account_name": m.remote_account_name}
        for m in rows
    }


def save_mappings(
    db: Session,
    practice_id: str,
    mappings: Sequence[Dict[str, str]],
    *,
    actor_id: Optional[str] = None,
) -> List[AccountMapping]:
    """
    Upsert category -> remote account. Categories not mentioned keep their
    current mapping. Validation happens before any write.
    """
    require_practice(db, practice_id)
    seen = set()
    for item in mappings:
        category = item.get("category")
        if category not in CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(CATEGORIES)}")
        if category in seen:
            raise ValueError(f"duplicate mapping for category '{category}'")
        seen.add(category)
        if not (item.get("remote_account_id") or "").strip():
            raise ValueError("remote_account_id is required")
        if not (item.get("remote_account_name") or "").strip():
            raise ValueError("remote_account_name is required")

    existing = mapping_by_category(db, practice_id)
    before = _mapping_state(list(existing.values()))

    for item in mappings:
        row = existing.get(item["category"])
        if row is None:
            row = AccountMapping(practice_id=practice_id, category=item["category"])
        row.remote_account_id = item["remote_account_id"].strip()
        row.remote_account_name = item["remote_account_name"].strip()
        db.add(row)
    db.flush()

    rows = get_mappings(db, practice_id)
    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="account_mappings_updated",
        entity_type="account_mapping",
        old_value=before or None,
        new_value=_mapping_state(rows),
    )
    db.commit()
    return rows


def list_remote_accounts(db: Session, practice_id: str) -> List[RemoteAccount]:
    require_practice(db, practice_id)
    with accounting_client(db, practice_id) as client:
        return client.list_accounts()
