"""
Response DTOs for link, stats and safety endpoints.

LinkResponse     - POST /api/v1/links, POST /api/v1/pages (201), PATCH (200)
LinkListResponse - GET /api/v1/links
StatsResponse    - GET /api/v1/links/{code}/stats
PageResponse     - GET /bio/{code}
WorkspaceResponse - POST /api/v1/workspaces/{id}/members, GET /api/v1/workspaces/{id}
WorkspaceStatsResponse - GET /api/v1/workspaces/{id}/stats
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from schemas.models.analytics import DailyClicks, LinkClicks
from schemas.models.link import LinkEntity, LinkKind, PageContent
from schemas.models.safety import SafetyVerdict
from schemas.models.workspace import Workspace


class LinkResponse(BaseModel):
    code: str
    short_url: str
    kind: str
    url: Optional[str] = None
    page: Optional[PageContent] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    max_clicks: Optional[int] = None
    current_clicks: int = 0
    safety: Optional[SafetyVerdict] = None

    @classmethod
    def from_entity(
        cls,
        code: str,
        entity: LinkEntity,
        base_url: str,
        safety: Optional[SafetyVerdict] = None,
    ) -> "LinkResponse":
        path = f"bio/{code}" if entity.kind is LinkKind.PAGE else code
        return cls(
            code=code,
            short_url=f"{base_url.rstrip('/')}/{path}",
            kind=entity.kind.value,
            url=entity.url,
            page=entity.page,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
            max_clicks=entity.max_clicks,
            current_clicks=entity.current_clicks,
            safety=safety,
        )


class LinkListResponse(BaseModel):
    links: list[str]


class RankedEntry(BaseModel):
    key: str
    count: int


class StatsResponse(BaseModel):
    code: str
    days: int
    clicks: int
    uniques: int
    qr_scans: int
    chart: str
    daily: list[DailyClicks]
    top_referrers: list[RankedEntry]
    top_countries: list[RankedEntry]


class TopLinksResponse(BaseModel):
    days: int
    links: list[LinkClicks]


class PageResponse(BaseModel):
    code: str
    page: PageContent


class WorkspaceResponse(BaseModel):
    id: str
    name: str
    members: int
    links: int

    @classmethod
    def from_model(cls, workspace_id: str, workspace: Workspace) -> "WorkspaceResponse":
        return cls(
            id=workspace_id,
            name=workspace.name,
            members=len(workspace.members),
            links=len(workspace.links),
        )


class WorkspaceStatsResponse(BaseModel):
    id: str
    days: int
    clicks: int
    uniques: int
    links_tracked: int
    top_links: list[LinkClicks]
