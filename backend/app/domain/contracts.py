from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


# -------------------------
# Shared vocabularies
# -------------------------

Category = Literal["business", "personal", "ambiguous"]
CATEGORIES: tuple[str, ...] = ("business", "personal", "ambiguous")

# Where a categorization came from. "model" is reserved for a learned classifier.
CategorizationSource = Literal["rule", "model", "user"]
CATEGORIZATION_SOURCES: tuple[str, ...] = ("rule", "model", "user")

MatchType = Literal["vendor", "description", "amount_range"]
MATCH_TYPES: tuple[str, ...] = ("vendor", "description", "amount_range")


class RemoteEntityType(str, enum.Enum):
    """Remote accounting entity a transaction was synced from."""

    PURCHASE = "Purchase"
    DEPOSIT = "Deposit"
    TRANSFER = "Transfer"

    @property
    def endpoint(self) -> str:
        return self.value.lower()


# -------------------------
# Contracts shared by services and routes
# -------------------------

class CategorizationContract(BaseModel):
    id: int
    transaction_id: str
    category: Category
    confidence: int = Field(ge=0, le=100)
    source: CategorizationSource
    rule_id: Optional[str] = None
    reasoning: Optional[str] = None
    created_at: datetime


class WriteBackItemContract(BaseModel):
    transaction_id: str
    remote_txn_id: str
    remote_entity_type: RemoteEntityType
    current_account_ref: str
    target_account_ref: str
    target_account_id: str
    category: Category
    confidence: int
    amount: float
    vendor_name: Optional[str] = None
    date: date


class WriteBackPreviewContract(BaseModel):
    items: List[WriteBackItemContract]
    total_transactions: int
    account_mappings: Dict[str, str]


class WriteBackErrorContract(BaseModel):
    transaction_id: str
    error: str


class WriteBackResultContract(BaseModel):
    succeeded: int
    failed: int
    errors: List[WriteBackErrorContract]
