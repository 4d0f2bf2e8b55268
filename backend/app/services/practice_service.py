from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from backend.app.industries import DEFAULT_INDUSTRY_SLUG, normalize_slug
from backend.app.models import Practice


def create_practice(db: Session, *, name: str, industry: Optional[str] = None) -> Practice:
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValueError("name is required")
    # Unknown slugs are allowed: a global template row may be added for them later.
    practice = Practice(name=clean_name, industry=normalize_slug(industry) or DEFAULT_INDUSTRY_SLUG)
    db.add(practice)
    db.commit()
    db.refresh(practice)
    return practice


def hard_delete_practice(db: Session, practice_id: str) -> bool:
    """Removes the practice and, by cascade, its transactions, categorizations, rules and mappings."""
    practice = db.get(Practice, practice_id)
    if not practice:
        return False
    db.delete(practice)
    db.commit()
    return True
