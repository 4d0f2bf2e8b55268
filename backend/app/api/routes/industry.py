from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.api.deps import get_actor_id
from backend.app.db import get_db
from backend.app.industries.types import IndustryConfig
from backend.app.services import industry_config_service

router = APIRouter(prefix="/api/industry", tags=["industry"])


class IndustryTemplateOut(BaseModel):
    slug: str
    name: str


@router.get("/templates", response_model=List[IndustryTemplateOut])
def list_industry_templates():
    return [IndustryTemplateOut(**t) for t in industry_config_service.list_templates()]


@router.get("/{practice_id}/config", response_model=IndustryConfig)
def get_industry_config(practice_id: str, db: Session = Depends(get_db)):
    return industry_config_service.resolve_config(db, practice_id)


@router.put("/{practice_id}/config", response_model=IndustryConfig)
def put_industry_config(
    practice_id: str,
    req: IndustryConfig,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return industry_config_service.save_practice_override(db, practice_id, req, actor_id=actor_id)
