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

chiropractic_config = IndustryConfig(
    slug="chiropractic",
    name="Chiropractic Office",
    vendors={
        "business": [
            "Palmer Supply",
            "SpineMD",
            "JTECH Medical",
            "Hill Laboratories",
            "Chattanooga Medical Supply",
            "Dynatronics",
            "Performance Health",
            "Biofreeze",
            "Foot Levelers",
            "Standard Process",
            "Activator Methods",
            "Ergo-Flex Technologies",
            "The Joint",
        ],
        "business_patterns": [
            "chiropractic supply",
            "chiro supply",
            "spinal",
            "adjustment table",
        ],
        "software": [
            "ChiroTouch",
            "Chiromatrix",
            "Eclipse Practice Management",
            "ChiroFusion",
        ],
        "payroll": PAYROLL_PROCESSORS,
        "personal": PERSONAL_SUBSCRIPTIONS,
        "patterns": PERSONAL_PATTERNS,
        "ambiguous": AMBIGUOUS_RETAIL,
    },
    seasonality=[1.08, 1.02, 1.0, 0.98, 0.97, 0.92, 0.88, 0.90, 0.98, 1.02, 1.05, 1.02],
    benchmarks={
        "overhead_ratio": {
            "healthy": 0.50,
            "target": (0.50, 0.60),
            "elevated": 0.70,
            "critical": 0.70,
        }
    },
    account_mappings={
        "business": [
            "chiropractic supplies",
            "treatment supplies",
            "medical supplies",
            *BUSINESS_ACCOUNTS,
        ],
        "personal": PERSONAL_ACCOUNTS,
        "ambiguous": AMBIGUOUS_ACCOUNTS,
    },
    debt_service_patterns=DEBT_SERVICE_PATTERNS,
    owner_draw_patterns=OWNER_DRAW_PATTERNS,
)
