"""
Usage analytics: per-day counters, visitor dedup, rollups and exports.

Every counter update is a plain read-modify-write against the store. Two
events for the same code landing at the same moment can overwrite each
other's increment, so counts are approximate under contention.

``record_event`` runs detached from the redirect it describes (see
``shared.background``), so nothing here may delay or fail a redirect.
"""

from __future__ import annotations

import asyncio
import csv
import io
from typing import Optional, Sequence
from urllib.parse import urlsplit

from errors import ForbiddenError, NotFoundError, ValidationError
from repositories.link_repository import LinkRepository
from repositories.stats_repository import StatsRepository
from repositories.workspace_repository import WorkspaceRepository
from schemas.models.analytics import (
    DailyBucket,
    DailyClicks,
    LinkClicks,
    OriginContext,
    StatsResult,
)
from schemas.models.workspace import WorkspaceStats
from shared.crypto import visitor_fingerprint
from shared.datetime_utils import day_key, recent_days, today_key
from shared.logging import get_logger, hash_ip, should_sample

log = get_logger(__name__)

BAR_GLYPHS = ("_", "▁", "▂", "▃", "▄", "▅", "▆", "▇", "█")
UNKNOWN_COUNTRY = "unknown"
CSV_HEADER = ("Date", "Clicks", "Uniques", "QR Scans")
TOP_LINKS_WINDOW = 20
WORKSPACE_TOP_LINKS = 3


def referrer_domain(referrer: Optional[str]) -> Optional[str]:
    """``https://news.ycombinator.com/item?id=1`` → ``news.ycombinator.com``."""
    if not referrer:
        return None
    try:
        return urlsplit(referrer).hostname or None
    except ValueError:
        return None


def build_bar_chart(series: Sequence[DailyClicks]) -> str:
    """One glyph per day, scaled against the busiest day of the series.

    A series of all zeros renders as the lowest glyph throughout.
    """
    if not series:
        return "No data"
    peak = max(max(day.clicks for day in series), 1)
    top_level = len(BAR_GLYPHS) - 1
    # half-up rounding; round() would round 0.5 to even
    return "".join(
        BAR_GLYPHS[int(day.clicks / peak * top_level + 0.5)] for day in series
    )


def top_n(histogram: dict[str, int], n: int = 3) -> list[tuple[str, int]]:
    """Highest counts first; equal counts fall back to key order."""
    ranked = sorted(histogram.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:n]


def _merge(into: dict[str, int], other: dict[str, int]) -> None:
    for key, count in other.items():
        into[key] = into.get(key, 0) + count


class AnalyticsService:
    def __init__(
        self,
        stats: StatsRepository,
        links: LinkRepository,
        workspaces: WorkspaceRepository,
        *,
        max_days: int = 90,
    ) -> None:
        self._stats = stats
        self._links = links
        self._workspaces = workspaces
        self._max_days = max_days

    async def record_event(
        self, code: str, origin: OriginContext, is_qr_scan: bool = False
    ) -> None:
        day = today_key()
        fingerprint = visitor_fingerprint(origin.ip, origin.user_agent)

        bucket = await self._stats.get_bucket(code, day)
        bucket.clicks += 1
        if is_qr_scan:
            bucket.qr_scans += 1

        domain = referrer_domain(origin.referrer)
        if domain:
            bucket.referrers[domain] = bucket.referrers.get(domain, 0) + 1

        country = origin.country or UNKNOWN_COUNTRY
        bucket.countries[country] = bucket.countries.get(country, 0) + 1

        is_new_visitor = not await self._stats.has_visitor(code, fingerprint, day)
        if is_new_visitor:
            bucket.uniques += 1
            await self._stats.mark_visitor(code, fingerprint, day)

        await self._stats.save_bucket(code, day, bucket)

        if should_sample("url_redirect"):
            log.info(
                "click_recorded",
                code=code,
                day=day,
                unique=is_new_visitor,
                qr=is_qr_scan,
                country=country,
                ip_hash=hash_ip(origin.ip),
            )

    def _check_days(self, days: int) -> None:
        if not 1 <= days <= self._max_days:
            raise ValidationError(
                f"days must be between 1 and {self._max_days}", field="days"
            )

    async def _load_window(self, code: str, days: int) -> list[tuple[str, DailyBucket]]:
        """(day key, bucket) pairs, newest first, today included."""
        keys = [day_key(day) for day in recent_days(days)]
        buckets = await asyncio.gather(
            *(self._stats.get_bucket(code, key) for key in keys)
        )
        return list(zip(keys, buckets))

    async def get_stats(self, code: str, days: int = 7) -> StatsResult:
        self._check_days(days)
        result = StatsResult()

        for key, bucket in await self._load_window(code, days):
            result.clicks += bucket.clicks
            result.uniques += bucket.uniques
            result.qr_scans += bucket.qr_scans
            _merge(result.referrers, bucket.referrers)
            _merge(result.countries, bucket.countries)
            result.daily.append(DailyClicks(date=key, clicks=bucket.clicks))

        result.daily.reverse()

        if should_sample("stats_query"):
            log.info("stats_query", code=code, days=days, clicks=result.clicks)
        return result

    async def export_csv(self, code: str, days: int = 30) -> str:
        """CSV with one row per day, newest first (today is the first row)."""
        self._check_days(days)
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for key, bucket in await self._load_window(code, days):
            iso_day = f"{key[:4]}-{key[4:6]}-{key[6:]}"
            writer.writerow([iso_day, bucket.clicks, bucket.uniques, bucket.qr_scans])

        if should_sample("stats_export"):
            log.info("stats_export", code=code, days=days)
        return output.getvalue()

    async def top_links(
        self, owner: str, days: int = 30, limit: int = 5
    ) -> list[LinkClicks]:
        """Busiest of the owner's most recent links over the last *days*."""
        self._check_days(days)
        codes = (await self._links.list_owner_codes(owner))[-TOP_LINKS_WINDOW:]
        totals = await asyncio.gather(*(self._sum_clicks(code, days) for code in codes))
        ranked = sorted(
            (LinkClicks(code=code, clicks=clicks) for code, clicks in zip(codes, totals)),
            key=lambda item: item.clicks,
            reverse=True,
        )
        return ranked[:limit]

    async def _sum_clicks(self, code: str, days: int) -> int:
        clicks, _ = await self._sum_window(code, days)
        return clicks

    async def _sum_window(self, code: str, days: int) -> tuple[int, int]:
        window = await self._load_window(code, days)
        return (
            sum(bucket.clicks for _, bucket in window),
            sum(bucket.uniques for _, bucket in window),
        )

    async def workspace_stats(
        self, workspace_id: str, member: str, days: int = 30
    ) -> WorkspaceStats:
        """Clicks and uniques summed over the workspace's most recent links.

        Only members may read the rollup. ``links_tracked`` counts every link
        ever added, while the totals cover the last ``TOP_LINKS_WINDOW`` of
        them.
        """
        self._check_days(days)
        workspace = await self._workspaces.get(workspace_id)
        if workspace is None:
            raise NotFoundError("workspace not found")
        if member not in workspace.members:
            raise ForbiddenError("you are not a member of this workspace")

        codes = workspace.links[-TOP_LINKS_WINDOW:]
        totals = await asyncio.gather(*(self._sum_window(code, days) for code in codes))

        result = WorkspaceStats(links_tracked=len(workspace.links))
        ranked = []
        for code, (clicks, uniques) in zip(codes, totals):
            result.clicks += clicks
            result.uniques += uniques
            ranked.append(LinkClicks(code=code, clicks=clicks))
        ranked.sort(key=lambda item: item.clicks, reverse=True)
        result.top_links = ranked[:WORKSPACE_TOP_LINKS]

        if should_sample("stats_query"):
            log.info(
                "workspace_stats_query",
                workspace_id=workspace_id,
                days=days,
                clicks=result.clicks,
            )
        return result

