from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from backend.app.api.config import (
    account_fallback_policy,
    allow_practice_delete,
    qbo_demo_mode,
    write_back_high_confidence,
    write_back_max_batch,
)

router = APIRouter(prefix="/api", tags=["config"])


class ConfigOut(BaseModel):
    qbo_demo_mode: bool
    allow_practice_delete: bool
    account_fallback_policy: str
    write_back_max_batch: int
    write_back_high_confidence: int


@router.get("/config", response_model=ConfigOut)
def get_config() -> ConfigOut:
    return ConfigOut(
        qbo_demo_mode=qbo_demo_mode(),
        allow_practice_delete=allow_practice_delete(),
        account_fallback_policy=account_fallback_policy(),
        write_back_max_batch=write_back_max_batch(),
        write_back_high_confidence=write_back_high_confidence(),
    )
