"""
Public resolution endpoints.

GET /{code}      - 302 to the destination, 410 when expired or exhausted
GET /bio/{code}  - page content as JSON, same terminal rules

Click-limited links are counted before the redirect goes out. Analytics (and
the click count of unlimited links) run in a detached background task so a
slow or failing store write never delays the redirect.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from dependencies import get_analytics_service, get_link_service
from errors import NotFoundError
from schemas.dto.responses.link import PageResponse
from schemas.models.analytics import OriginContext
from schemas.models.link import LinkEntity, LinkKind
from services.analytics_service import AnalyticsService
from services.link_service import LinkService, ResolveState
from shared.background import fire_and_forget
from shared.ip_utils import get_origin_context
from shared.logging import get_logger, hash_ip, log_with_context, should_sample
from shared.validators import validate_alias

router = APIRouter(tags=["redirect"])
log = get_logger(__name__)

_TERMINAL_MESSAGES = {
    ResolveState.EXPIRED: ("link_expired", "This link has expired"),
    ResolveState.EXHAUSTED: ("link_exhausted", "This link has reached its click limit"),
}


async def _track_click(
    code: str,
    entity: LinkEntity,
    origin: OriginContext,
    is_qr_scan: bool,
    analytics: AnalyticsService,
    links: LinkService,
) -> None:
    await analytics.record_event(code, origin, is_qr_scan=is_qr_scan)
    if entity.max_clicks is None:
        await links.increment_clicks(code)


def _terminal_response(state: ResolveState) -> JSONResponse:
    error_code, message = _TERMINAL_MESSAGES[state]
    return JSONResponse(status_code=410, content={"error": message, "code": error_code})


async def _resolve_active(
    code: str, request: Request, links: LinkService, analytics: AnalyticsService
):
    """Resolve *code*; returns the entity when active, else a terminal response."""
    if not validate_alias(code):
        raise NotFoundError("link not found")

    result = await links.resolve(code)
    if result.state is ResolveState.NOT_FOUND:
        raise NotFoundError("link not found")
    if result.is_terminal:
        return None, _terminal_response(result.state)

    await links.record_hit(code)

    origin = get_origin_context(request)
    is_qr_scan = request.query_params.get("src") == "qr"
    fire_and_forget(
        _track_click(code, result.entity, origin, is_qr_scan, analytics, links),
        name=f"track_click:{code}",
    )

    if should_sample("url_redirect"):
        log_with_context(log, code=code).info(
            "url_redirect",
            kind=result.entity.kind.value,
            qr=is_qr_scan,
            ip_hash=hash_ip(origin.ip),
        )
    return result.entity, None


@router.get("/bio/{code}", response_model=PageResponse)
async def show_page(
    code: str,
    request: Request,
    links: LinkService = Depends(get_link_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    entity, terminal = await _resolve_active(code, request, links, analytics)
    if terminal is not None:
        return terminal
    if entity.kind is not LinkKind.PAGE:
        return RedirectResponse(entity.url, status_code=302)
    return PageResponse(code=code, page=entity.page)


@router.get("/{code}")
async def redirect_link(
    code: str,
    request: Request,
    links: LinkService = Depends(get_link_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    entity, terminal = await _resolve_active(code, request, links, analytics)
    if terminal is not None:
        return terminal
    if entity.kind is LinkKind.PAGE:
        return JSONResponse(content=PageResponse(code=code, page=entity.page).model_dump())
    return RedirectResponse(entity.url, status_code=302)
