from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from backend.app.api.deps import require_practice
from backend.app.domain.contracts import CATEGORIES
from backend.app.models import Categorization, Transaction


SORT_COLUMNS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "vendor": Transaction.vendor_name,
    "confidence": Categorization.confidence,
}

UNCATEGORIZED = "uncategorized"


def _latest_categorization_id():
    return (
        select(Categorization.id)
        .where(Categorization.transaction_id == Transaction.id)
        .order_by(Categorization.created_at.desc(), Categorization.id.desc())
        .limit(1)
        .correlate(Transaction)
        .scalar_subquery()
    )


def list_transactions(
    db: Session,
    practice_id: str,
    *,
    page: int = 1,
    limit: int = 50,
    sort_by: str = "date",
    sort_dir: str = "desc",
    category: Optional[str] = None,
    vendor: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    min_confidence: Optional[int] = None,
    max_confidence: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Transactions joined to their latest categorization (or none).
    category="uncategorized" selects transactions with no categorization yet.
    """
    require_practice(db, practice_id)
    if sort_by not in SORT_COLUMNS:
        raise ValueError(f"sort_by must be one of {', '.join(SORT_COLUMNS)}")
    if sort_dir not in ("asc", "desc"):
        raise ValueError("sort_dir must be asc or desc")
    if category and category not in CATEGORIES and category != UNCATEGORIZED:
        raise ValueError(f"category must be one of {', '.join(CATEGORIES + (UNCATEGORIZED,))}")

    stmt = (
        select(Transaction, Categorization)
        .outerjoin(
            Categorization,
            and_(
                Categorization.transaction_id == Transaction.id,
                Categorization.id == _latest_categorization_id(),
            ),
        )
        .where(Transaction.practice_id == practice_id)
    )

    if vendor:
        stmt = stmt.where(Transaction.vendor_name.ilike(f"%{vendor}%"))
    if date_from:
        stmt = stmt.where(Transaction.date >= date_from)
    if date_to:
        stmt = stmt.where(Transaction.date <= date_to)
    if category == UNCATEGORIZED:
        stmt = stmt.where(Categorization.id.is_(None))
    elif category:
        stmt = stmt.where(Categorization.category == category)
    if min_confidence is not None:
        stmt = stmt.where(Categorization.confidence >= min_confidence)
    if max_confidence is not None:
        stmt = stmt.where(Categorization.confidence <= max_confidence)

    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

    column = SORT_COLUMNS[sort_by]
    ordered = column.asc() if sort_dir == "asc" else column.desc()
    rows = db.execute(
        stmt.order_by(ordered, Transaction.id.asc()).limit(limit).offset((page - 1) * limit)
    ).all()

    items = []
    for txn, cat in rows:
        items.append(
            {
                "id": txn.id,
                "remote_txn_id": txn.remote_txn_id,
                "remote_entity_type": txn.remote_entity_type.value,
                "date": txn.date,
                "amount": float(txn.amount),
                "vendor_name": txn.vendor_name,
                "description": txn.description,
                "account_ref": txn.account_ref,
                "synced_at": txn.synced_at,
                "category": cat.category if cat else None,
                "confidence": cat.confidence if cat else None,
                "source": cat.source if cat else None,
                "reasoning": cat.reasoning if cat else None,
            }
        )

    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit if limit else 0,
    }
