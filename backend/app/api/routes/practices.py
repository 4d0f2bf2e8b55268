from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.config import allow_practice_delete
from backend.app.api.deps import require_practice
from backend.app.db import get_db
from backend.app.services import practice_service

router = APIRouter(prefix="/api/practices", tags=["practices"])


class PracticeCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    industry: Optional[str] = Field(None, max_length=80)


class PracticeOut(BaseModel):
    id: str
    name: str
    industry: Optional[str] = None
    created_at: datetime


def _practice_out(practice) -> PracticeOut:
    return PracticeOut(
        id=practice.id,
        name=practice.name,
        industry=practice.industry,
        created_at=practice.created_at,
    )


@router.post("", response_model=PracticeOut, status_code=201)
def create_practice(payload: PracticeCreateIn, db: Session = Depends(get_db)):
    try:
        practice = practice_service.create_practice(db, name=payload.name, industry=payload.industry)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _practice_out(practice)


@router.get("/{practice_id}", response_model=PracticeOut)
def get_practice(practice_id: str, db: Session = Depends(get_db)):
    return _practice_out(require_practice(db, practice_id))


@router.delete("/{practice_id}")
def delete_practice(
    practice_id: str,
    confirm: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    if not allow_practice_delete():
        raise HTTPException(status_code=403, detail="practice delete not enabled")
    if not confirm:
        raise HTTPException(status_code=400, detail="confirm=true is required")
    deleted = practice_service.hard_delete_practice(db, practice_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="practice not found")
    return {"deleted": True, "practice_id": practice_id}
