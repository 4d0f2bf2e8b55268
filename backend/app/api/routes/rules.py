from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_actor_id
from backend.app.db import get_db
from backend.app.domain.contracts import Category, MatchType
from backend.app.services import categorize_service

router = APIRouter(prefix="/api/rules", tags=["rules"])


class UserRuleOut(BaseModel):
    id: str
    practice_id: str
    match_type: str
    match_value: str
    category: str
    priority: int
    created_at: datetime


class UserRuleCreateIn(BaseModel):
    match_type: MatchType
    match_value: str = Field(..., min_length=1, max_length=200)
    category: Category
    priority: int = 0


class UserRuleUpdateIn(BaseModel):
    match_type: Optional[MatchType] = None
    match_value: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[Category] = None
    priority: Optional[int] = None


def _rule_out(rule) -> UserRuleOut:
    return UserRuleOut(
        id=rule.id,
        practice_id=rule.practice_id,
        match_type=rule.match_type,
        match_value=rule.match_value,
        category=rule.category,
        priority=rule.priority,
        created_at=rule.created_at,
    )


@router.get("/{practice_id}", response_model=List[UserRuleOut])
def list_rules(practice_id: str, db: Session = Depends(get_db)):
    return [_rule_out(r) for r in categorize_service.list_user_rules(db, practice_id)]


@router.post("/{practice_id}", response_model=UserRuleOut, status_code=201)
def create_rule(
    practice_id: str,
    req: UserRuleCreateIn,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    try:
        rule = categorize_service.create_user_rule(
            db,
            practice_id,
            match_type=req.match_type,
            match_value=req.match_value,
            category=req.category,
            priority=req.priority,
            actor_id=actor_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _rule_out(rule)


@router.patch("/{practice_id}/{rule_id}", response_model=UserRuleOut)
def update_rule(
    practice_id: str,
    rule_id: str,
    req: UserRuleUpdateIn,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    try:
        rule = categorize_service.update_user_rule(
            db,
            practice_id,
            rule_id,
            match_type=req.match_type,
            match_value=req.match_value,
            category=req.category,
            priority=req.priority,
            actor_id=actor_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _rule_out(rule)


@router.delete("/{practice_id}/{rule_id}", status_code=204)
def delete_rule(
    practice_id: str,
    rule_id: str,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    categorize_service.delete_user_rule(db, practice_id, rule_id, actor_id=actor_id)
    return Response(status_code=204)
