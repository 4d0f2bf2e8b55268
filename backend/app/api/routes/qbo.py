from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_actor_id
from backend.app.db import get_db
from backend.app.domain.contracts import Category
from backend.app.integrations import RemoteAccountingError, RemoteAuthError
from backend.app.services import account_mapping_service, sync_service

router = APIRouter(prefix="/api/qbo", tags=["qbo"])


class AccountMappingOut(BaseModel):
    id: str
    category: str
    remote_account_id: str
    remote_account_name: str
    created_at: datetime


class AccountMappingIn(BaseModel):
    category: Category
    remote_account_id: str = Field(..., min_length=1)
    remote_account_name: str = Field(..., min_length=1)


class AccountMappingsIn(BaseModel):
    mappings: List[AccountMappingIn] = Field(..., min_length=1, max_length=3)


class RemoteAccountOut(BaseModel):
    id: str
    name: str
    account_type: Optional[str] = None
    sub_type: Optional[str] = None


class SyncIn(BaseModel):
    months_back: int = Field(sync_service.DEFAULT_MONTHS_BACK, ge=1, le=60)


class SyncOut(BaseModel):
    synced: int
    updated: int
    errors: int


def _remote_http_error(exc: RemoteAccountingError) -> HTTPException:
    if isinstance(exc, RemoteAuthError):
        return HTTPException(status_code=401, detail=f"remote authentication failed: {exc.message}")
    return HTTPException(status_code=502, detail=f"remote accounting error: {exc.message}")


def _mapping_out(row) -> AccountMappingOut:
    return AccountMappingOut(
        id=row.id,
        category=row.category,
        remote_account_id=row.remote_account_id,
        remote_account_name=row.remote_account_name,
        created_at=row.created_at,
    )


@router.get("/{practice_id}/account-mappings", response_model=List[AccountMappingOut])
def get_account_mappings(practice_id: str, db: Session = Depends(get_db)):
    return [_mapping_out(m) for m in account_mapping_service.get_mappings(db, practice_id)]


@router.put("/{practice_id}/account-mappings", response_model=List[AccountMappingOut])
def put_account_mappings(
    practice_id: str,
    req: AccountMappingsIn,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    try:
        rows = account_mapping_service.save_mappings(
            db,
            practice_id,
            [m.model_dump() for m in req.mappings],
            actor_id=actor_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [_mapping_out(m) for m in rows]


@router.get("/{practice_id}/accounts", response_model=List[RemoteAccountOut])
def get_remote_accounts(practice_id: str, db: Session = Depends(get_db)):
    try:
        accounts = account_mapping_service.list_remote_accounts(db, practice_id)
    except RemoteAccountingError as exc:
        raise _remote_http_error(exc) from exc
    return [
        RemoteAccountOut(id=a.id, name=a.name, account_type=a.account_type, sub_type=a.sub_type)
        for a in accounts
    ]


@router.post("/{practice_id}/sync", response_model=SyncOut)
def sync_remote_transactions(
    practice_id: str,
    req: Optional[SyncIn] = None,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    months_back = req.months_back if req else sync_service.DEFAULT_MONTHS_BACK
    try:
        result = sync_service.sync_transactions(db, practice_id, months_back=months_back, actor_id=actor_id)
    except RemoteAccountingError as exc:
        raise _remote_http_error(exc) from exc
    return SyncOut(**result)
