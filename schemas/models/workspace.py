"""
Shared workspace model.

Workspace → ``workspace:{id}``. A workspace groups the links its members
publish so their usage can be read as one rollup. Members and links keep
insertion order and never repeat.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from schemas.models.analytics import LinkClicks

DEFAULT_WORKSPACE_NAME = "Workspace"


class Workspace(BaseModel):
    name: str = DEFAULT_WORKSPACE_NAME
    admins: list[str] = Field(default_factory=list)
    members: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)

    def to_store(self) -> str:
        return self.model_dump_json()


class WorkspaceStats(BaseModel):
    """Totals over the workspace's most recent links."""

    clicks: int = 0
    uniques: int = 0
    links_tracked: int = 0
    top_links: list[LinkClicks] = Field(default_factory=list)
