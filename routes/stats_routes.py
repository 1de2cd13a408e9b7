"""
Per-link usage statistics for the link's owner.

GET /api/v1/links/{code}/stats   - totals, bar chart, top referrers/countries
GET /api/v1/links/{code}/export  - CSV download, newest day first
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from dependencies import get_analytics_service, get_link_service, get_owner
from schemas.dto.responses.link import RankedEntry, StatsResponse
from services.analytics_service import AnalyticsService, build_bar_chart, top_n
from services.link_service import LinkService

router = APIRouter(prefix="/api/v1/links", tags=["stats"])


@router.get("/{code}/stats", response_model=StatsResponse)
async def link_stats(
    code: str,
    days: int = Query(default=7),
    owner: str = Depends(get_owner),
    links: LinkService = Depends(get_link_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> StatsResponse:
    await links.get_owned(code, owner)
    stats = await analytics.get_stats(code, days)
    return StatsResponse(
        code=code,
        days=days,
        clicks=stats.clicks,
        uniques=stats.uniques,
        qr_scans=stats.qr_scans,
        chart=build_bar_chart(stats.daily),
        daily=stats.daily,
        top_referrers=[RankedEntry(key=k, count=c) for k, c in top_n(stats.referrers)],
        top_countries=[RankedEntry(key=k, count=c) for k, c in top_n(stats.countries)],
    )


@router.get("/{code}/export")
async def export_stats(
    code: str,
    days: int = Query(default=30),
    owner: str = Depends(get_owner),
    links: LinkService = Depends(get_link_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> Response:
    await links.get_owned(code, owner)
    content = await analytics.export_csv(code, days)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{code}-stats.csv"'},
    )
