from __future__ import annotations

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VendorLists(BaseModel):
    """
    Vendor names and keywords, one list per rule-engine tier.

    ambiguous          -> ambiguous retail override (checked before any business list)
    business           -> supply vendors
    labs               -> lab names
    business_patterns  -> lab / supply keywords matched against vendor + description
    software           -> practice-management software
    payroll            -> payroll processors
    personal           -> personal subscriptions
    patterns           -> personal keywords matched against vendor + description
    """

    model_config = ConfigDict(extra="forbid")

    business: List[str] = Field(default_factory=list)
    labs: List[str] = Field(default_factory=list)
    business_patterns: List[str] = Field(default_factory=list)
    software: List[str] = Field(default_factory=list)
    payroll: List[str] = Field(default_factory=list)
    personal: List[str] = Field(default_factory=list)
    patterns: List[str] = Field(default_factory=list)
    ambiguous: List[str] = Field(default_factory=list)


class OverheadRatioBenchmark(BaseModel):
    healthy: float
    target: Tuple[float, float]
    elevated: float
    critical: float

    @model_validator(mode="after")
    def _ordered(self) -> "OverheadRatioBenchmark":
        low, high = self.target
        if low > high:
            raise ValueError("overhead ratio target must be (low, high)")
        return self


class Benchmarks(BaseModel):
    overhead_ratio: OverheadRatioBenchmark


class AccountMappingTables(BaseModel):
    """Remote account labels (lower-case) known to be business / personal / ambiguous."""

    business: List[str] = Field(default_factory=list)
    personal: List[str] = Field(default_factory=list)
    ambiguous: List[str] = Field(default_factory=list)


class IndustryConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str = Field(min_length=1, max_length=80)
    name: str = Field(min_length=1, max_length=200)
    vendors: VendorLists
    seasonality: List[float]
    benchmarks: Benchmarks
    account_mappings: AccountMappingTables
    debt_service_patterns: List[str] = Field(default_factory=list)
    owner_draw_patterns: List[str] = Field(default_factory=list)

    @field_validator("seasonality")
    @classmethod
    def _twelve_months(cls, value: List[float]) -> List[float]:
        if len(value) != 12:
            raise ValueError("seasonality must have exactly 12 monthly indices")
        if any(v <= 0 for v in value):
            raise ValueError("seasonality indices must be positive")
        return value
