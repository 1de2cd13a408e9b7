"""
Usage analytics models.

DailyBucket → ``stats:{code}:{YYYYMMDD}``. Buckets are append-only: every
event increments counters, nothing is ever overwritten downwards. A missing
bucket reads as all zeros.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DailyBucket(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clicks: int = 0
    uniques: int = 0
    qr_scans: int = Field(default=0, alias="qrScans")
    referrers: dict[str, int] = Field(default_factory=dict)
    countries: dict[str, int] = Field(default_factory=dict)

    def to_store(self) -> str:
        return self.model_dump_json(by_alias=True)


@dataclass
class OriginContext:
    """What the analytics pipeline needs to know about one request."""

    ip: str = ""
    user_agent: str = ""
    referrer: Optional[str] = None
    country: Optional[str] = None


class DailyClicks(BaseModel):
    date: str  # YYYYMMDD
    clicks: int


class StatsResult(BaseModel):
    """Totals over a window of days plus the per-day click series."""

    clicks: int = 0
    uniques: int = 0
    qr_scans: int = 0
    referrers: dict[str, int] = Field(default_factory=dict)
    countries: dict[str, int] = Field(default_factory=dict)
    daily: list[DailyClicks] = Field(default_factory=list)  # oldest first


class LinkClicks(BaseModel):
    code: str
    clicks: int
