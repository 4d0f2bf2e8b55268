from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_actor_id
from backend.app.db import get_db
from backend.app.domain.contracts import Category
from backend.app.services import categorize_service

router = APIRouter(prefix="/api/categorize", tags=["categorize"])


class CategorizeRunOut(BaseModel):
    categorized: int
    uncategorized: int
    failed: int
    fallback_applied: int
    message: str


class CategorizationOut(BaseModel):
    id: int
    transaction_id: str
    category: str
    confidence: int
    source: str
    rule_id: Optional[str] = None
    reasoning: Optional[str] = None
    created_at: datetime


class ManualCategorizeIn(BaseModel):
    category: Category
    confidence: int = Field(100, ge=0, le=100)


class BatchCategorizeIn(BaseModel):
    transaction_ids: List[str] = Field(..., min_length=1, max_length=categorize_service.MANUAL_BATCH_MAX)
    category: Category


class BatchCategorizeOut(BaseModel):
    categorized: int
    category: str


def categorization_out(row) -> CategorizationOut:
    return CategorizationOut(
        id=row.id,
        transaction_id=row.transaction_id,
        category=row.category,
        confidence=row.confidence,
        source=row.source,
        rule_id=row.rule_id,
        reasoning=row.reasoning,
        created_at=row.created_at,
    )


@router.post("/{practice_id}/run", response_model=CategorizeRunOut)
def run_categorization(
    practice_id: str,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    result = categorize_service.run_batch_categorization(db, practice_id, actor_id=actor_id)
    return CategorizeRunOut(
        **result,
        message=(
            f"Categorized {result['categorized']} transactions, "
            f"{result['uncategorized']} remain uncategorized"
        ),
    )


@router.put("/{practice_id}/transactions/{txn_id}", response_model=CategorizationOut)
def categorize_transaction(
    practice_id: str,
    txn_id: str,
    req: ManualCategorizeIn,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    try:
        row = categorize_service.categorize_manually(
            db,
            practice_id,
            txn_id,
            category=req.category,
            confidence=req.confidence,
            actor_id=actor_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return categorization_out(row)


@router.post("/{practice_id}/batch", response_model=BatchCategorizeOut)
def categorize_batch(
    practice_id: str,
    req: BatchCategorizeIn,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    try:
        result = categorize_service.categorize_batch_manually(
            db,
            practice_id,
            req.transaction_ids,
            category=req.category,
            actor_id=actor_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BatchCategorizeOut(**result)
