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

veterinary_config = IndustryConfig(
    slug="veterinary",
    name="Veterinary Clinic",
    vendors={
        "business": [
            "Covetrus",
            "Henry Schein Animal Health",
            "VetSource",
            "Patterson Veterinary",
            "MWI Animal Health",
            "Heska",
            "Zoetis",
            "Elanco",
            "Merck Animal Health",
            "Dechra Veterinary Products",
            "VetCove",
            "Wedgewood Pharmacy",
            "Abaxis",
            "Sound Veterinary Equipment",
            "VetEquip",
        ],
        "labs": ["Idexx", "Antech Diagnostics"],
        "business_patterns": [
            "veterinary supply",
            "vet supply",
            "animal health",
            "pet pharmacy",
            "boarding",
            "kennel",
        ],
        "software": [
            "Cornerstone",
            "AVImark",
            "eVetPractice",
            "Vetter Software",
            "Shepherd Veterinary Software",
        ],
        "payroll": PAYROLL_PROCESSORS,
        "personal": PERSONAL_SUBSCRIPTIONS,
        "patterns": PERSONAL_PATTERNS,
        "ambiguous": AMBIGUOUS_RETAIL,
    },
    # Spring tick/flea season peak, summer emergencies, winter low.
    seasonality=[0.92, 0.90, 1.02, 1.08, 1.10, 1.05, 1.08, 1.05, 0.98, 0.95, 0.92, 0.95],
    benchmarks={
        "overhead_ratio": {
            "healthy": 0.60,
            "target": (0.60, 0.70),
            "elevated": 0.78,
            "critical": 0.78,
        }
    },
    account_mappings={
        "business": [
            "veterinary supplies",
            "medical supplies",
            "pharmaceuticals",
            "lab fees",
            "diagnostics",
            "boarding supplies",
            *BUSINESS_ACCOUNTS,
        ],
        "personal": PERSONAL_ACCOUNTS,
        "ambiguous": AMBIGUOUS_ACCOUNTS,
    },
    debt_service_patterns=DEBT_SERVICE_PATTERNS,
    owner_draw_patterns=OWNER_DRAW_PATTERNS,
)
