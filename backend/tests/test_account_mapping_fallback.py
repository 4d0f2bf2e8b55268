import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_account_mapping_fallback.db")

from backend.app.categorization.account_mapping import categorize_by_account, with_account_fallback
from backend.app.categorization.types import RuleResult
from backend.app.industries import STATIC_CONFIGS


DENTAL = STATIC_CONFIGS["dental"]


def test_business_account_label():
    result = categorize_by_account("Lab Fees", DENTAL)
    assert (result.category, result.confidence) == ("business", 95)
    assert result.reasoning == 'Remote account "Lab Fees" is a known business account'


def test_personal_and_ambiguous_labels():
    assert categorize_by_account("Personal Expenses", DENTAL).confidence == 90
    ambiguous = categorize_by_account("  office supplies ", DENTAL)
    assert (ambiguous.category, ambiguous.confidence) == ("ambiguous", 50)


def test_match_is_exact_not_substring():
    assert categorize_by_account("Rent for vacation home", DENTAL) is None
    assert categorize_by_account(None, DENTAL) is None
    assert categorize_by_account("", DENTAL) is None


def test_fallback_never_overrides_rule_result():
    low = RuleResult(category="ambiguous", confidence=40, rule_id=None, reasoning="retail")
    assert with_account_fallback(low, "Lab Fees", DENTAL, policy="unmatched") is low


def test_fallback_fills_none_only_when_enabled():
    assert with_account_fallback(None, "Lab Fees", DENTAL, policy="off") is None

    filled = with_account_fallback(None, "Lab Fees", DENTAL, policy="unmatched")
    assert filled.category == "business"
    assert filled.rule_id is None
    assert filled.confidence == 95


def test_fallback_with_unknown_account_stays_none():
    assert with_account_fallback(None, "Mystery", DENTAL, policy="unmatched") is None
