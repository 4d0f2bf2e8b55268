# backend/app/api/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from backend.app.models import Practice


def get_actor_id(request: Request) -> Optional[str]:
    """
    Actor identity for audit entries.

    Reads X-User-Id from the request headers. Authentication happens upstream;
    this only records who the caller says they are. Missing header -> None
    (recorded as a system action).
    """
    actor = (request.headers.get("X-User-Id") or "").strip()
    return actor or None


def require_practice(db: Session, practice_id: str) -> Practice:
    practice = db.get(Practice, practice_id)
    if not practice:
        raise HTTPException(status_code=404, detail="practice not found")
    return practice
