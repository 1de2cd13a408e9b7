"""
Link entity models.

One JSON document per short code lives under ``link:{code}``. Stored key
names are camelCase (``createdBy``, ``maxClicks`` ...); pydantic field
aliases map them to Python identifiers, and ``to_store()`` writes them back
with the same aliases.

Legacy deployments stored a bare ``{code}`` → URL string. ``from_legacy()``
upgrades such a value to a full ownerless redirect entity.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

PAGE_THEMES = ("light", "dark", "gradient", "minimal")


class LinkKind(str, Enum):
    REDIRECT = "redirect"
    PAGE = "page"


class PageButton(BaseModel):
    label: str
    url: str


class PageContent(BaseModel):
    """Content of a link-in-bio page."""

    title: str
    description: str = ""
    buttons: list[PageButton] = Field(default_factory=list)
    theme: str = "light"


class LinkEntity(BaseModel):
    """
    Stored record a code resolves to.

    ``current_clicks`` only grows. For click-limited links it is bumped
    synchronously on every redirect; for unlimited links the analytics
    background task bumps it, so it may lag behind under load.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: LinkKind = Field(alias="type")
    url: Optional[str] = None
    page: Optional[PageContent] = None
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    created_at: datetime = Field(alias="createdAt")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    max_clicks: Optional[int] = Field(default=None, alias="maxClicks")
    current_clicks: int = Field(default=0, alias="currentClicks")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def is_exhausted(self) -> bool:
        return self.max_clicks is not None and self.current_clicks >= self.max_clicks

    def to_store(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_store(cls, data: Optional[dict]) -> Optional["LinkEntity"]:
        if data is None:
            return None
        return cls.model_validate(data)

    @classmethod
    def from_legacy(cls, url: str, now: datetime) -> "LinkEntity":
        return cls(kind=LinkKind.REDIRECT, url=url, created_by=None, created_at=now)


class OwnerIndex(BaseModel):
    """``user:{owner}`` - codes in creation order."""

    links: list[str] = Field(default_factory=list)
