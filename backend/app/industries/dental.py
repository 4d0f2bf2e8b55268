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

DENTAL_SUPPLY_VENDORS = [
    "Henry Schein",
    "Patterson Dental",
    "Benco Dental",
    "Darby Dental",
    "Net32",
    "Ultradent",
    "Dentsply Sirona",
    "Dentsply",
    "3M Dental",
    "3M ESPE",
    "Hu-Friedy",
    "Ivoclar Vivadent",
    "Kerr Dental",
    "Septodont",
    "Crosstex",
    "Young Dental",
    "Brasseler",
    "Midwest Dental",
    "Miltex",
    "Coltene",
    "GC America",
    "Shofu Dental",
    "Premier Dental",
    "Orascoptic",
    "SciCan",
    "A-dec",
    "Pelton & Crane",
]

DENTAL_LAB_VENDORS = [
    "Glidewell",
    "Burbank Dental Lab",
    "Artistic Dental Lab",
    "Bay Area Dental Lab",
    "Pacific Dental Lab",
]

DENTAL_LAB_PATTERNS = ["dental lab", "dental laboratory"]

DENTAL_PRACTICE_SOFTWARE = [
    "Dentrix",
    "Eaglesoft",
    "Open Dental",
    "Pearl",
    "Weave",
    "Curve Dental",
    "Dentally",
    "Apteryx",
    "XrayVision",
    "Dexis",
    "Carestream Dental",
    "Planmeca",
    "iDentalSoft",
]

dental_config = IndustryConfig(
    slug="dental",
    name="Dental Practice",
    vendors={
        "business": DENTAL_SUPPLY_VENDORS,
        "labs": DENTAL_LAB_VENDORS,
        "business_patterns": DENTAL_LAB_PATTERNS,
        "software": DENTAL_PRACTICE_SOFTWARE,
        "payroll": PAYROLL_PROCESSORS,
        "personal": PERSONAL_SUBSCRIPTIONS,
        "patterns": PERSONAL_PATTERNS,
        "ambiguous": AMBIGUOUS_RETAIL,
    },
    # Jan benefit reset, summer vacation dip, Q4 insurance "use it or lose it".
    seasonality=[1.05, 1.0, 1.02, 1.0, 0.98, 0.94, 0.9, 0.95, 1.0, 1.02, 1.05, 1.09],
    benchmarks={
        "overhead_ratio": {
            "healthy": 0.60,
            "target": (0.60, 0.65),
            "elevated": 0.75,
            "critical": 0.75,
        }
    },
    account_mappings={
        "business": ["lab fees", "dental supplies", "instruments", "medical waste", *BUSINESS_ACCOUNTS],
        "personal": PERSONAL_ACCOUNTS,
        "ambiguous": AMBIGUOUS_ACCOUNTS,
    },
    debt_service_patterns=DEBT_SERVICE_PATTERNS,
    owner_draw_patterns=OWNER_DRAW_PATTERNS,
)
