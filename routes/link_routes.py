"""
Owner link management.

POST   /api/v1/links          - publish a redirect after a safety check,
                                optionally filed under a workspace
POST   /api/v1/pages          - publish a link-in-bio page
GET    /api/v1/links          - the caller's codes, newest first
PATCH  /api/v1/links/{code}   - owner-only partial edit
DELETE /api/v1/links/{code}   - owner-only delete
GET    /api/v1/top            - the caller's busiest recent links
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from config import AppSettings
from dependencies import (
    get_analytics_service,
    get_link_service,
    get_owner,
    get_safety_service,
    get_settings,
    get_workspace_repository,
)
from errors import ConflictError, ValidationError
from repositories.workspace_repository import WorkspaceRepository
from schemas.dto.requests.link import CreateLinkRequest, CreatePageRequest, EditLinkRequest
from schemas.dto.responses.link import LinkListResponse, LinkResponse, TopLinksResponse
from schemas.models.link import PageContent
from schemas.models.safety import SafetyLevel
from services.analytics_service import AnalyticsService
from services.link_service import LinkPatch, LinkService
from services.safety_service import SafetyService
from shared.datetime_utils import parse_duration
from shared.logging import get_logger

router = APIRouter(prefix="/api/v1", tags=["links"])
log = get_logger(__name__)


def _expiry(expires_in: Optional[str]) -> Optional[datetime]:
    if expires_in is None:
        return None
    expires_at = parse_duration(expires_in)
    if expires_at is None:
        raise ValidationError(
            "unparseable duration, use 30m, 2h, 7d or a future ISO 8601 datetime",
            field="expires_in",
        )
    return expires_at


@router.post("/links", response_model=LinkResponse, status_code=201)
async def create_link(
    body: CreateLinkRequest,
    owner: str = Depends(get_owner),
    settings: AppSettings = Depends(get_settings),
    links: LinkService = Depends(get_link_service),
    safety: SafetyService = Depends(get_safety_service),
    workspaces: WorkspaceRepository = Depends(get_workspace_repository),
) -> LinkResponse:
    expires_at = _expiry(body.expires_in)

    verdict = await safety.full_check(body.url)
    if verdict.level is SafetyLevel.DANGEROUS:
        log.warning("link_rejected_dangerous", owner=owner, reasons=verdict.reasons)
        raise ValidationError(
            "URL was flagged as dangerous",
            field="url",
            details={"reasons": verdict.reasons},
        )
    if verdict.level is SafetyLevel.SUSPICIOUS and not body.force:
        raise ConflictError(
            "URL looks suspicious; resend with force=true to publish anyway",
            field="url",
            details={"reasons": verdict.reasons},
        )

    created = await links.create(
        body.url, owner, expires_at=expires_at, max_clicks=body.max_clicks
    )
    if body.workspace:
        await workspaces.add_member(body.workspace, owner)
        await workspaces.add_link(body.workspace, created.code)
    return LinkResponse.from_entity(
        created.code, created.entity, settings.app_url, safety=verdict
    )


@router.post("/pages", response_model=LinkResponse, status_code=201)
async def create_page(
    body: CreatePageRequest,
    owner: str = Depends(get_owner),
    settings: AppSettings = Depends(get_settings),
    links: LinkService = Depends(get_link_service),
) -> LinkResponse:
    page = PageContent(
        title=body.title,
        description=body.description,
        buttons=body.buttons,
        theme=body.theme,
    )
    created = await links.create(page, owner, expires_at=_expiry(body.expires_in))
    return LinkResponse.from_entity(created.code, created.entity, settings.app_url)


@router.get("/links", response_model=LinkListResponse)
async def list_links(
    owner: str = Depends(get_owner),
    links: LinkService = Depends(get_link_service),
) -> LinkListResponse:
    return LinkListResponse(links=await links.list_owner_links(owner))


@router.patch("/links/{code}", response_model=LinkResponse)
async def edit_link(
    code: str,
    body: EditLinkRequest,
    owner: str = Depends(get_owner),
    settings: AppSettings = Depends(get_settings),
    links: LinkService = Depends(get_link_service),
) -> LinkResponse:
    updates = body.model_dump(exclude_unset=True)
    expires_in = updates.pop("expires_in", None)
    if expires_in is not None:
        updates["expires_at"] = _expiry(expires_in)

    entity = await links.edit(code, owner, LinkPatch(**updates))
    return LinkResponse.from_entity(code, entity, settings.app_url)


@router.delete("/links/{code}", status_code=204)
async def delete_link(
    code: str,
    owner: str = Depends(get_owner),
    links: LinkService = Depends(get_link_service),
) -> Response:
    await links.delete(code, owner)
    return Response(status_code=204)


@router.get("/top", response_model=TopLinksResponse)
async def top_links(
    days: int = Query(default=30),
    limit: int = Query(default=5, ge=1, le=20),
    owner: str = Depends(get_owner),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> TopLinksResponse:
    ranked = await analytics.top_links(owner, days=days, limit=limit)
    return TopLinksResponse(days=days, links=ranked)
