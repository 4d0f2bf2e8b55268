from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import require_practice
from backend.app.industries import (
    DEFAULT_INDUSTRY_SLUG,
    available_industries,
    general_config,
    get_static_config,
    normalize_slug,
)
from backend.app.industries.types import IndustryConfig
from backend.app.models import IndustryConfigRecord, utcnow
from backend.app.services import audit_service


logger = logging.getLogger(__name__)


def _practice_override(db: Session, practice_id: str) -> Optional[IndustryConfigRecord]:
    return (
        db.execute(
            select(IndustryConfigRecord)
            .where(IndustryConfigRecord.practice_id == practice_id)
            .order_by(IndustryConfigRecord.updated_at.desc(), IndustryConfigRecord.id.desc())
            .limit(1)
        )
        .scalars()
        .first()
    )


def get_config_by_slug(db: Session, slug: Optional[str]) -> IndustryConfig:
    """
    Named template lookup: static registry, then global rows (practice_id NULL),
    then the generic default.
    """
    key = normalize_slug(slug)
    static = get_static_config(key)
    if static is not None:
        return static

    if key:
        row = (
            db.execute(
                select(IndustryConfigRecord)
                .where(
                    IndustryConfigRecord.practice_id.is_(None),
                    IndustryConfigRecord.industry_slug == key,
                )
                .order_by(IndustryConfigRecord.updated_at.desc())
                .limit(1)
            )
            .scalars()
            .first()
        )
        if row is not None:
            return IndustryConfig.model_validate(row.config_json)

    logger.info("industry template not found, using generic default slug=%s", key or None)
    return general_config


def resolve_config(db: Session, practice_id: str) -> IndustryConfig:
    """
    Tenant override -> template for the practice's industry slug -> generic default.

    Read-only. A missing practice raises 404; a stored override that no longer
    validates raises pydantic.ValidationError rather than silently defaulting.
    """
    practice = require_practice(db, practice_id)

    override = _practice_override(db, practice_id)
    if override is not None:
        return IndustryConfig.model_validate(override.config_json)

    return get_config_by_slug(db, practice.industry or DEFAULT_INDUSTRY_SLUG)


def save_practice_override(
    db: Session,
    practice_id: str,
    config: IndustryConfig,
    *,
    actor_id: Optional[str] = None,
) -> IndustryConfig:
    require_practice(db, practice_id)

    payload: Dict[str, Any] = config.model_dump(mode="json")
    existing = _practice_override(db, practice_id)
    old_value = existing.config_json if existing is not None else None

    if existing is not None:
        existing.config_json = payload
        existing.industry_slug = config.slug
        existing.is_custom = True
        existing.updated_at = utcnow()
        db.add(existing)
    else:
        db.add(
            IndustryConfigRecord(
                practice_id=practice_id,
                industry_slug=config.slug,
                config_json=payload,
                is_custom=True,
            )
        )

    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="update_industry_config",
        entity_type="industry_config",
        entity_id=config.slug,
        old_value=old_value,
        new_value=payload,
    )
    db.commit()
    return config


def list_templates() -> List[Dict[str, str]]:
    return available_industries()
