from __future__ import annotations

from typing import Optional

from backend.app.categorization.types import AccountMappingResult, RuleResult
from backend.app.industries.types import IndustryConfig


def categorize_by_account(
    account_ref: Optional[str],
    config: IndustryConfig,
) -> Optional[AccountMappingResult]:
    """
    Classify from the transaction's current remote account label.
    Exact (case-insensitive) match against the configured tables.
    """
    if not account_ref:
        return None

    label = account_ref.strip().lower()
    tables = config.account_mappings

    if label in {a.strip().lower() for a in tables.business}:
        return AccountMappingResult(
            category="business",
            confidence=95,
            reasoning=f'Remote account "{account_ref}" is a known business account',
        )
    if label in {a.strip().lower() for a in tables.personal}:
        return AccountMappingResult(
            category="personal",
            confidence=90,
            reasoning=f'Remote account "{account_ref}" is a known personal account',
        )
    if label in {a.strip().lower() for a in tables.ambiguous}:
        return AccountMappingResult(
            category="ambiguous",
            confidence=50,
            reasoning=f'Remote account "{account_ref}" is ambiguous, could be business or personal',
        )
    return None


def with_account_fallback(
    rule_result: Optional[RuleResult],
    account_ref: Optional[str],
    config: IndustryConfig,
    *,
    policy: str,
) -> Optional[RuleResult]:
    """
    Combine engine output with the fallback. A rule engine decision always
    wins, whatever its confidence; the fallback only fills a None.
    """
    if rule_result is not None or policy != "unmatched":
        return rule_result
    fallback = categorize_by_account(account_ref, config)
    if fallback is None:
        return None
    return RuleResult(
        category=fallback.category,
        confidence=fallback.confidence,
        rule_id=None,
        reasoning=fallback.reasoning,
    )
