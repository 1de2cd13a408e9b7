"""
Link registry and resolver.

Owns code generation, the entity lifecycle and the redirect decision.
Nothing is cached between calls: every operation re-reads the entity.

Lifecycle states are evaluated lazily when a code is resolved; there is no
background sweeper. Expiry is checked before the click limit, so an expired
link reports EXPIRED even when it is also over its limit.

Click accounting is deliberately asymmetric:
- click-limited links bump ``current_clicks`` synchronously in
  ``record_hit()`` before the redirect is issued. Two concurrent resolutions
  can still both see a count below the limit; the window is narrowed, not
  closed, and the result is at most a small overcount.
- unlimited links skip that write; the analytics task counts them later.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence, Union

from pydantic import BaseModel

from errors import (
    CodeSpaceExhaustedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from repositories.link_repository import LinkRepository
from schemas.models.link import (
    PAGE_THEMES,
    LinkEntity,
    LinkKind,
    PageButton,
    PageContent,
)
from shared.datetime_utils import ensure_utc, utc_now
from shared.generators import generate_short_code
from shared.logging import get_logger
from shared.validators import validate_url

log = get_logger(__name__)


class ResolveState(str, Enum):
    NOT_FOUND = "not_found"
    ACTIVE = "active"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


@dataclass
class ResolveResult:
    state: ResolveState
    entity: Optional[LinkEntity] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (ResolveState.EXPIRED, ResolveState.EXHAUSTED)


@dataclass
class CreatedLink:
    code: str
    entity: LinkEntity


class LinkPatch(BaseModel):
    """Owner edit. Unset fields are left untouched."""

    url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    theme: Optional[str] = None
    add_button: Optional[PageButton] = None
    remove_button_index: Optional[int] = None
    expires_at: Optional[datetime] = None


_PAGE_FIELDS = ("title", "description", "theme", "add_button", "remove_button_index")


class LinkService:
    def __init__(
        self,
        links: LinkRepository,
        *,
        code_length: int = 6,
        max_attempts: int = 5,
        blocked_domains: Sequence[str] = (),
    ) -> None:
        self._links = links
        self._code_length = code_length
        self._max_attempts = max_attempts
        self._blocked_domains = tuple(blocked_domains)

    # ── Registry ────────────────────────────────────────────────────────────

    async def create(
        self,
        destination: Union[str, PageContent],
        owner: str,
        *,
        expires_at: Optional[datetime] = None,
        max_clicks: Optional[int] = None,
    ) -> CreatedLink:
        """Publish a redirect (``str`` destination) or a page (``PageContent``)."""
        now = utc_now()
        if expires_at is not None:
            expires_at = ensure_utc(expires_at)
        if max_clicks is not None and max_clicks < 1:
            raise ValidationError("max_clicks must be at least 1", field="max_clicks")
        if expires_at is not None and expires_at <= now:
            raise ValidationError("expiration must be in the future", field="expires_at")

        if isinstance(destination, PageContent):
            self._check_page(destination)
            entity = LinkEntity(
                kind=LinkKind.PAGE,
                page=destination,
                created_by=owner,
                created_at=now,
                expires_at=expires_at,
                max_clicks=max_clicks,
            )
        else:
            self._check_url(destination)
            entity = LinkEntity(
                kind=LinkKind.REDIRECT,
                url=destination.strip(),
                created_by=owner,
                created_at=now,
                expires_at=expires_at,
                max_clicks=max_clicks,
            )

        code = await self._allocate_code()
        await self._links.save(code, entity)
        await self._links.add_owner_code(owner, code)

        log.info(
            "link_created",
            code=code,
            kind=entity.kind.value,
            owner=owner,
            max_clicks=max_clicks,
            expires=expires_at is not None,
        )
        return CreatedLink(code=code, entity=entity)

    async def _allocate_code(self) -> str:
        for attempt in range(1, self._max_attempts + 1):
            code = generate_short_code(self._code_length)
            if not await self._links.exists(code):
                return code
            log.warning("code_collision", code=code, attempt=attempt)
        log.error("code_space_exhausted", attempts=self._max_attempts)
        raise CodeSpaceExhaustedError(
            "could not allocate a unique short code, try again"
        )

    async def list_owner_links(self, owner: str) -> list[str]:
        """The owner's codes, newest first."""
        codes = await self._links.list_owner_codes(owner)
        return list(reversed(codes))

    # ── Resolver ────────────────────────────────────────────────────────────

    async def resolve(self, code: str) -> ResolveResult:
        entity = await self._links.get(code)
        if entity is None:
            return ResolveResult(ResolveState.NOT_FOUND)

        if entity.is_expired(utc_now()):
            log.info("link_expired", code=code)
            return ResolveResult(ResolveState.EXPIRED, entity)
        if entity.is_exhausted():
            log.info(
                "link_exhausted",
                code=code,
                current_clicks=entity.current_clicks,
                max_clicks=entity.max_clicks,
            )
            return ResolveResult(ResolveState.EXHAUSTED, entity)
        return ResolveResult(ResolveState.ACTIVE, entity)

    async def record_hit(self, code: str) -> None:
        """Count a hit on a click-limited link before the redirect goes out."""
        entity = await self._links.get(code)
        if entity is None or entity.max_clicks is None:
            return
        entity.current_clicks += 1
        await self._links.save(code, entity)

    async def increment_clicks(self, code: str) -> None:
        """Deferred hit counting for unlimited links (analytics path)."""
        entity = await self._links.get(code)
        if entity is None or entity.max_clicks is not None:
            return
        entity.current_clicks += 1
        await self._links.save(code, entity)

    # ── Owner operations ────────────────────────────────────────────────────

    async def get_owned(self, code: str, owner: str) -> LinkEntity:
        entity = await self._links.get(code)
        if entity is None:
            raise NotFoundError("link not found")
        if entity.created_by is None or entity.created_by != owner:
            raise ForbiddenError("you do not own this link")
        return entity

    async def edit(self, code: str, owner: str, patch: LinkPatch) -> LinkEntity:
        entity = await self.get_owned(code, owner)
        updates = patch.model_dump(exclude_unset=True)

        if entity.kind is LinkKind.REDIRECT:
            misplaced = [f for f in _PAGE_FIELDS if f in updates]
            if misplaced:
                raise ValidationError(
                    "page fields cannot be set on a redirect link",
                    field=misplaced[0],
                )
            if patch.url is not None:
                self._check_url(patch.url)
                entity.url = patch.url.strip()
        else:
            if "url" in updates:
                raise ValidationError(
                    "a page has no destination URL; edit its buttons instead",
                    field="url",
                )
            self._apply_page_patch(entity.page, patch)

        if patch.expires_at is not None:
            now = utc_now()
            new_expiry = ensure_utc(patch.expires_at)
            if entity.is_expired(now):
                raise ValidationError(
                    "link has already expired", field="expires_at"
                )
            if new_expiry <= now:
                raise ValidationError(
                    "expiration must be in the future", field="expires_at"
                )
            entity.expires_at = new_expiry

        await self._links.save(code, entity)
        log.info("link_edited", code=code, owner=owner, fields=sorted(updates))
        return entity

    def _apply_page_patch(self, page: PageContent, patch: LinkPatch) -> None:
        if patch.title is not None:
            if not patch.title.strip():
                raise ValidationError("title cannot be empty", field="title")
            page.title = patch.title
        if patch.description is not None:
            page.description = patch.description
        if patch.theme is not None:
            if patch.theme not in PAGE_THEMES:
                raise ValidationError(f"unknown theme: {patch.theme}", field="theme")
            page.theme = patch.theme
        if patch.add_button is not None:
            self._check_url(patch.add_button.url)
            page.buttons.append(patch.add_button)
        if patch.remove_button_index is not None:
            index = patch.remove_button_index
            if not 0 <= index < len(page.buttons):
                raise ValidationError(
                    f"button index {index} is out of range",
                    field="remove_button_index",
                )
            del page.buttons[index]

    async def delete(self, code: str, owner: str) -> None:
        await self.get_owned(code, owner)
        await self._links.delete(code)
        await self._links.remove_owner_code(owner, code)
        log.info("link_deleted", code=code, owner=owner)

    # ── Validation ──────────────────────────────────────────────────────────

    def _check_url(self, url: str) -> None:
        if not validate_url(url, self._blocked_domains):
            raise ValidationError("invalid URL", field="url")

    def _check_page(self, page: PageContent) -> None:
        if not page.title.strip():
            raise ValidationError("title cannot be empty", field="title")
        if page.theme not in PAGE_THEMES:
            raise ValidationError(f"unknown theme: {page.theme}", field="theme")
        for button in page.buttons:
            self._check_url(button.url)
