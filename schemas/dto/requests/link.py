"""
Request DTOs for link publishing, editing and safety endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from schemas.models.link import PageButton

WORKSPACE_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class CreateLinkRequest(BaseModel):
    """Request body for publishing a redirect link.

    ``expires_in`` takes ``30m`` / ``2h`` / ``7d`` or a future ISO 8601
    datetime. ``force`` publishes despite a *suspicious* verdict; it never
    overrides *dangerous*. ``workspace`` joins the caller to that workspace
    and files the new link under it.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(validation_alias=AliasChoices("url", "long_url"))
    expires_in: Optional[str] = None
    max_clicks: Optional[int] = Field(default=None, gt=0)
    force: bool = False
    workspace: Optional[str] = Field(default=None, pattern=WORKSPACE_ID_PATTERN)


class CreatePageRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    buttons: list[PageButton] = Field(default_factory=list, max_length=50)
    theme: str = "light"
    expires_in: Optional[str] = None


class EditLinkRequest(BaseModel):
    """Partial update; only provided fields change."""

    url: Optional[str] = None
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    theme: Optional[str] = None
    add_button: Optional[PageButton] = None
    remove_button_index: Optional[int] = None
    expires_in: Optional[str] = None


class SafetyCheckRequest(BaseModel):
    url: str


class ReportRequest(BaseModel):
    url: str


class PreferencesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    style: str
    color_scheme: str = Field(validation_alias=AliasChoices("color_scheme", "colorScheme"))


class JoinWorkspaceRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
