from __future__ import annotations

import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_actor_id
from backend.app.db import get_db
from backend.app.domain.contracts import WriteBackPreviewContract, WriteBackResultContract
from backend.app.services import write_back_service

router = APIRouter(prefix="/api/qbo", tags=["write-back"])


class WriteBackExecuteIn(BaseModel):
    transaction_ids: List[str]
    # Stop starting new items after this many seconds; an item in flight always completes.
    timeout_seconds: Optional[float] = Field(None, gt=0)


class WriteBackHistoryOut(BaseModel):
    id: str
    actor_id: Optional[str] = None
    action: str
    new_value: Optional[Dict[str, Any]] = None
    created_at: datetime


@router.get("/{practice_id}/write-back/preview", response_model=WriteBackPreviewContract)
def preview_write_back(
    practice_id: str,
    since_date: Optional[date] = Query(None),
    only_high_confidence: bool = Query(True),
    categories: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        return write_back_service.preview_write_back(
            db,
            practice_id,
            since_date=since_date,
            only_high_confidence=only_high_confidence,
            categories=categories,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/{practice_id}/write-back/execute", response_model=WriteBackResultContract)
def execute_write_back(
    practice_id: str,
    req: WriteBackExecuteIn,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    deadline = time.monotonic() + req.timeout_seconds if req.timeout_seconds else None
    try:
        return write_back_service.execute_write_back(
            db,
            practice_id,
            req.transaction_ids,
            actor_id=actor_id,
            deadline=deadline,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/{practice_id}/write-back/history", response_model=List[WriteBackHistoryOut])
def write_back_history(
    practice_id: str,
    limit: int = Query(write_back_service.HISTORY_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
):
    rows = write_back_service.write_back_history(db, practice_id, limit=limit)
    return [
        WriteBackHistoryOut(
            id=row["id"],
            actor_id=row["actor_id"],
            action=row["action"],
            new_value=row["new_value"],
            created_at=row["created_at"],
        )
        for row in rows
    ]
