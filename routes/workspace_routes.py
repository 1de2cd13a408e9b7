"""
Shared workspaces.

POST /api/v1/workspaces/{workspace_id}/members  - join, creating it on first use
GET  /api/v1/workspaces/{workspace_id}          - name, member and link counts
GET  /api/v1/workspaces/{workspace_id}/stats    - rollup over recent links

Only members can read a workspace. Links are filed under one by passing
``workspace`` to POST /api/v1/links.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dependencies import get_analytics_service, get_owner, get_workspace_repository
from errors import ForbiddenError, NotFoundError, ValidationError
from repositories.workspace_repository import WorkspaceRepository
from schemas.dto.requests.link import JoinWorkspaceRequest
from schemas.dto.responses.link import WorkspaceResponse, WorkspaceStatsResponse
from services.analytics_service import AnalyticsService
from shared.validators import validate_alias

router = APIRouter(prefix="/api/v1/workspaces", tags=["workspaces"])


def _check_id(workspace_id: str) -> None:
    if not validate_alias(workspace_id):
        raise ValidationError("invalid workspace id", field="workspace_id")


@router.post("/{workspace_id}/members", response_model=WorkspaceResponse)
async def join_workspace(
    workspace_id: str,
    body: Optional[JoinWorkspaceRequest] = None,
    owner: str = Depends(get_owner),
    workspaces: WorkspaceRepository = Depends(get_workspace_repository),
) -> WorkspaceResponse:
    _check_id(workspace_id)
    name = body.name if body else None
    workspace = await workspaces.add_member(workspace_id, owner, name=name)
    return WorkspaceResponse.from_model(workspace_id, workspace)


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
async def get_workspace(
    workspace_id: str,
    owner: str = Depends(get_owner),
    workspaces: WorkspaceRepository = Depends(get_workspace_repository),
) -> WorkspaceResponse:
    _check_id(workspace_id)
    workspace = await workspaces.get(workspace_id)
    if workspace is None:
        raise NotFoundError("workspace not found")
    if owner not in workspace.members:
        raise ForbiddenError("you are not a member of this workspace")
    return WorkspaceResponse.from_model(workspace_id, workspace)


@router.get("/{workspace_id}/stats", response_model=WorkspaceStatsResponse)
async def workspace_stats(
    workspace_id: str,
    days: int = Query(default=30),
    owner: str = Depends(get_owner),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> WorkspaceStatsResponse:
    _check_id(workspace_id)
    stats = await analytics.workspace_stats(workspace_id, owner, days=days)
    return WorkspaceStatsResponse(id=workspace_id, days=days, **stats.model_dump())
