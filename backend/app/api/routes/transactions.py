from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.api.routes.categorize import CategorizationOut, categorization_out
from backend.app.db import get_db
from backend.app.services import categorize_service
from backend.app.services.transaction_service import list_transactions

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


class TransactionRowOut(BaseModel):
    id: str
    remote_txn_id: str
    remote_entity_type: str
    date: date
    amount: float
    vendor_name: Optional[str] = None
    description: Optional[str] = None
    account_ref: Optional[str] = None
    synced_at: datetime
    category: Optional[str] = None
    confidence: Optional[int] = None
    source: Optional[str] = None
    reasoning: Optional[str] = None


class TransactionPageOut(BaseModel):
    items: List[TransactionRowOut]
    total: int
    page: int
    limit: int
    total_pages: int


@router.get("/{practice_id}", response_model=TransactionPageOut)
def get_transactions(
    practice_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    sort_by: str = Query("date"),
    sort_dir: str = Query("desc"),
    category: Optional[str] = Query(None),
    vendor: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    min_confidence: Optional[int] = Query(None, ge=0, le=100),
    max_confidence: Optional[int] = Query(None, ge=0, le=100),
    db: Session = Depends(get_db),
):
    try:
        result = list_transactions(
            db,
            practice_id,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_dir=sort_dir,
            category=category,
            vendor=vendor,
            date_from=date_from,
            date_to=date_to,
            min_confidence=min_confidence,
            max_confidence=max_confidence,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TransactionPageOut(**result)


@router.get("/{practice_id}/{txn_id}/history", response_model=List[CategorizationOut])
def get_categorization_history(
    practice_id: str,
    txn_id: str,
    db: Session = Depends(get_db),
):
    rows = categorize_service.categorization_history(db, practice_id, txn_id)
    return [categorization_out(row) for row in rows]
