from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.db import get_db
from backend.app.services import audit_service

router = APIRouter(prefix="/audit", tags=["audit"])


class AuditLogOut(BaseModel):
    id: str
    practice_id: str
    actor_id: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    created_at: datetime


class AuditLogPageOut(BaseModel):
    items: List[AuditLogOut]
    next_cursor: Optional[str] = None


@router.get("/{practice_id}", response_model=AuditLogPageOut)
def list_audit_events(
    practice_id: str,
    limit: int = Query(100, ge=1, le=500),
    cursor: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    actor_id: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    result = audit_service.list_audit_events(
        db,
        practice_id,
        limit=limit,
        cursor=cursor,
        action=action,
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id,
        since=since,
        until=until,
    )
    return AuditLogPageOut(
        items=[AuditLogOut(**item) for item in result["items"]],
        next_cursor=result["next_cursor"],
    )
