"""
Safety verdict and community reputation models.

SafetyLevel is a closed enumeration with a total order
(safe < suspicious < dangerous). Verdicts only ever move up that order;
``escalate()`` is the single place that decides.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SafetyLevel(str, Enum):
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGEROUS = "dangerous"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def escalate(self, other: "SafetyLevel") -> "SafetyLevel":
        """Return the more severe of the two levels."""
        return other if other.severity > self.severity else self


_SEVERITY = {
    SafetyLevel.SAFE: 0,
    SafetyLevel.SUSPICIOUS: 1,
    SafetyLevel.DANGEROUS: 2,
}


class SafetyVerdict(BaseModel):
    level: SafetyLevel = SafetyLevel.SAFE
    reasons: list[str] = Field(default_factory=list)
    reputation_safe: Optional[bool] = None
    reputation_error: Optional[str] = None

    def flag(self, level: SafetyLevel, reason: str) -> None:
        self.reasons.append(reason)
        self.level = self.level.escalate(level)


class ReputationResult(BaseModel):
    """Outcome of the external reputation lookup."""

    safe: bool = True
    threats: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class ReputationEntry(BaseModel):
    """``blocklist:{domain}`` - community reports, one vote per reporter."""

    model_config = ConfigDict(populate_by_name=True)

    reported_by: list[str] = Field(default_factory=list, alias="reportedBy")
    report_count: int = Field(default=0, alias="reportCount")
    reported_at: Optional[datetime] = Field(default=None, alias="reportedAt")

    def to_store(self) -> str:
        return self.model_dump_json(by_alias=True)


class ReportResult(BaseModel):
    domain: str
    report_count: int
