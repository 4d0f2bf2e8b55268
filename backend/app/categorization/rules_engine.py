"""
Tier 1 deterministic categorization.

The engine is a pure function of (transaction, user rules, industry config):
no database access, no caching, no global state. Tiers are evaluated in a fixed
order and the first match wins.

  1. user rules (ascending priority)                  -> rule category, 100
  2. ambiguous retail vendors                         -> ambiguous, 40
  3. business supply vendors                          -> business, 100
  4. lab names, then lab/business keyword patterns    -> business, 100 / 95
  5. practice-management software                     -> business, 100
  6. payroll processors                               -> business, 100
  7. personal subscriptions                           -> personal, 95
  8. personal keyword patterns                        -> personal, 85

Ambiguous retail is deliberately checked before every business list so that
big-box retailers always land in manual review.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Sequence, Tuple

from backend.app.categorization.types import Amount, RuleResult, TransactionInput, UserRuleLike
from backend.app.industries.types import IndustryConfig


USER_RULE_CONFIDENCE = 100


@dataclass(frozen=True)
class _Tier:
    vendor_list: str      # attribute of VendorLists
    haystack: str         # "vendor" or "combined"
    category: str
    confidence: int
    reasoning: str        # format string; {match} and {vendor} available


BUILTIN_TIERS: Tuple[_Tier, ...] = (
    _Tier("ambiguous", "vendor", "ambiguous", 40,
          'Ambiguous retail vendor: {vendor} (matched "{match}"), requires manual review'),
    _Tier("business", "vendor", "business", 100, "Known supply vendor: {match}"),
    _Tier("labs", "vendor", "business", 100, "Known lab: {match}"),
    _Tier("business_patterns", "combined", "business", 95, 'Vendor or description contains lab pattern: "{match}"'),
    _Tier("software", "vendor", "business", 100, "Known practice software: {match}"),
    _Tier("payroll", "vendor", "business", 100, "Known payroll processor: {match}"),
    _Tier("personal", "vendor", "personal", 95, "Known personal subscription: {match}"),
    _Tier("patterns", "combined", "personal", 85, 'Matches personal pattern: "{match}"'),
)


def _lower(value: Optional[str]) -> str:
    return (value or "").lower()


def find_substring_match(haystack: str, needles: Iterable[str]) -> Optional[str]:
    """Return the first needle contained in haystack (case-insensitive), as configured."""
    lowered = haystack.lower()
    for needle in needles:
        key = (needle or "").strip().lower()
        if key and key in lowered:
            return needle
    return None


def _to_decimal(value: Amount) -> Optional[Decimal]:
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def parse_amount_range(match_value: str) -> Optional[Tuple[Decimal, Decimal]]:
    """
    Parse "min-max" into inclusive bounds. Returns None for anything malformed
    (missing bound, non-numeric, negative, or min > max).
    """
    raw = (match_value or "").strip()
    if "-" not in raw:
        return None
    low_raw, high_raw = raw.split("-", 1)
    low = _to_decimal(low_raw)
    high = _to_decimal(high_raw)
    if low is None or high is None:
        return None
    if not low.is_finite() or not high.is_finite():
        return None
    if low < 0 or low > high:
        return None
    return low, high


def user_rule_matches(rule: UserRuleLike, txn: TransactionInput) -> bool:
    needle = (rule.match_value or "").strip().lower()
    if not needle:
        return False

    if rule.match_type == "vendor":
        return needle in _lower(txn.vendor_name)
    if rule.match_type == "description":
        return needle in _lower(txn.description)
    if rule.match_type == "amount_range":
        bounds = parse_amount_range(rule.match_value)
        amount = _to_decimal(txn.amount)
        if bounds is None or amount is None or not amount.is_finite():
            return False
        low, high = bounds
        return low <= abs(amount) <= high
    return False


def order_user_rules(rules: Sequence[UserRuleLike]) -> List[UserRuleLike]:
    # sorted() is stable: equal priorities keep the caller's (first-defined) order.
    return sorted(rules, key=lambda r: r.priority)


def categorize_transaction(
    txn: TransactionInput,
    user_rules: Sequence[UserRuleLike],
    config: IndustryConfig,
) -> Optional[RuleResult]:
    """
    Classify one transaction. Returns None when no tier matches; the
    transaction then stays uncategorized.
    """
    for rule in order_user_rules(user_rules):
        if user_rule_matches(rule, txn):
            return RuleResult(
                category=rule.category,
                confidence=USER_RULE_CONFIDENCE,
                rule_id=rule.id,
                reasoning=f'User rule: {rule.match_type} matches "{rule.match_value}"',
            )

    vendor = txn.vendor_name or ""
    combined = f"{vendor} {txn.description or ''}"

    for tier in BUILTIN_TIERS:
        haystack = vendor if tier.haystack == "vendor" else combined
        if not haystack.strip():
            continue
        match = find_substring_match(haystack, getattr(config.vendors, tier.vendor_list))
        if match:
            return RuleResult(
                category=tier.category,
                confidence=tier.confidence,
                rule_id=None,
                reasoning=tier.reasoning.format(match=match, vendor=vendor),
            )

    return None
