"""Lists shared by every industry template. Add entries as single lines."""

PAYROLL_PROCESSORS = [
    "ADP",
    "Gusto",
    "Paychex",
    "QuickBooks Payroll",
    "Intuit Payroll",
]

PERSONAL_SUBSCRIPTIONS = [
    "Netflix",
    "Spotify",
    "Hulu",
    "Disney+",
    "HBO Max",
    "Apple TV",
    "Amazon Prime Video",
    "YouTube Premium",
    "Peacock",
    "Paramount+",
    "Peloton",
    "DoorDash",
    "Uber Eats",
    "Grubhub",
    "Postmates",
    "HelloFresh",
    "Blue Apron",
    "Starbucks",
]

PERSONAL_PATTERNS = [
    "gym",
    "fitness",
    "meal kit",
    "streaming",
]

# Big-box retailers sell both practice and household goods: always sent to review.
AMBIGUOUS_RETAIL = [
    "Amazon",
    "Walmart",
    "Target",
    "Costco",
    "Sam's Club",
    "Staples",
    "Office Depot",
    "Best Buy",
    "Apple Store",
]

BUSINESS_ACCOUNTS = [
    "payroll",
    "payroll expenses",
    "rent",
    "rent or lease",
    "utilities",
    "insurance",
    "professional fees",
    "professional",
    "continuing education",
    "education",
    "marketing",
    "advertising",
    "equipment",
    "equipment rental",
    "services",
    "uniforms",
    "software",
]

PERSONAL_ACCOUNTS = [
    "entertainment",
    "fitness",
    "personal",
    "owner's draw",
    "owner's personal",
    "personal expenses",
]

AMBIGUOUS_ACCOUNTS = [
    "supplies",
    "office supplies",
    "food",
    "meals",
    "meals and entertainment",
    "subscriptions",
    "miscellaneous",
    "other expenses",
    "uncategorized",
    "office",
]

DEBT_SERVICE_PATTERNS = [
    "loan payment",
    "note payable",
    "loan interest",
    "equipment loan",
    "practice loan",
    "mortgage",
    "line of credit",
]

OWNER_DRAW_PATTERNS = [
    "owner's draw",
    "owner's personal",
    "distributions",
    "owner salary",
    "owner draw",
]
