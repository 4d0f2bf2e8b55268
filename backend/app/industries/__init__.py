from __future__ import annotations

from typing import Dict, List, Optional

from backend.app.industries.chiropractic import chiropractic_config
from backend.app.industries.dental import dental_config
from backend.app.industries.general import general_config
from backend.app.industries.types import IndustryConfig
from backend.app.industries.veterinary import veterinary_config


DEFAULT_INDUSTRY_SLUG = "dental"
GENERIC_INDUSTRY_SLUG = "general"

STATIC_CONFIGS: Dict[str, IndustryConfig] = {
    "dental": dental_config,
    "chiropractic": chiropractic_config,
    "veterinary": veterinary_config,
    "general": general_config,
}


def normalize_slug(slug: Optional[str]) -> str:
    return (slug or "").strip().lower()


def get_static_config(slug: Optional[str]) -> Optional[IndustryConfig]:
    return STATIC_CONFIGS.get(normalize_slug(slug))


def available_industries() -> List[Dict[str, str]]:
    return [{"slug": c.slug, "name": c.name} for c in STATIC_CONFIGS.values()]


__all__ = [
    "DEFAULT_INDUSTRY_SLUG",
    "GENERIC_INDUSTRY_SLUG",
    "IndustryConfig",
    "STATIC_CONFIGS",
    "available_industries",
    "get_static_config",
    "normalize_slug",
    "general_config",
]
