"""
Value types for the deterministic categorization engine.

Design notes:
- Everything here is immutable and free of ORM/session references, so the
  engine can be exercised with fixed inputs and no backing store.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Union

from backend.app.domain.contracts import Category


Amount = Union[Decimal, float, int, str]


@dataclass(frozen=True)
class TransactionInput:
    """The slice of a Transaction the engine is allowed to look at."""

    vendor_name: Optional[str]
    description: Optional[str]
    amount: Amount
    account_ref: Optional[str] = None


@dataclass(frozen=True)
class RuleResult:
    category: Category
    confidence: int
    rule_id: Optional[str]
    reasoning: str


@dataclass(frozen=True)
class AccountMappingResult:
    category: Category
    confidence: int
    reasoning: str


class UserRuleLike(Protocol):
    id: str
    match_type: str
    match_value: str
    category: str
    priority: int


@dataclass(frozen=True)
class RuleSpec:
    """Detached user rule, handy for tests and previews."""

    id: str
    match_type: str
    match_value: str
    category: str
    priority: int = 0
