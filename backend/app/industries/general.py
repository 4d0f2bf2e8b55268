from backend.app.industries.common import (
    AMBIGUOUS_ACCOUNTS,
    AMBIGUOUS_RETAIL,
    BUSINESS_ACCOUNTS,
    DEBT_SERVICE_PATTERNS,
    OWNER_DRAW_PATTERNS,
    PAYROLL_PROCESSORS,
    PERSONAL_ACCOUNTS,
    PERSONAL_PATTERNS,
    PERSONAL_SUBSCRIPTIONS,
)
from backend.app.industries.types import IndustryConfig

# Generic default: used when a practice's industry slug has no template.
general_config = IndustryConfig(
    slug="general",
    name="General Small Business",
    vendors={
        "payroll": PAYROLL_PROCESSORS,
        "personal": PERSONAL_SUBSCRIPTIONS,
        "patterns": PERSONAL_PATTERNS,
        "ambiguous": AMBIGUOUS_RETAIL,
    },
    seasonality=[1.0] * 12,
    benchmarks={
        "overhead_ratio": {
            "healthy": 0.55,
            "target": (0.55, 0.65),
            "elevated": 0.75,
            "critical": 0.75,
        }
    },
    account_mappings={
        "business": BUSINESS_ACCOUNTS,
        "personal": PERSONAL_ACCOUNTS,
        "ambiguous": AMBIGUOUS_ACCOUNTS,
    },
    debt_service_patterns=DEBT_SERVICE_PATTERNS,
    owner_draw_patterns=OWNER_DRAW_PATTERNS,
)
