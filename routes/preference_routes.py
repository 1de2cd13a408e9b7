"""
QR codes, QR preferences and link previews.

GET /qrcode                  - QR image for ?url=, in the caller's saved style
GET /api/v1/preferences      - the caller's QR style and colour scheme
PUT /api/v1/preferences      - update them
GET /api/v1/preview          - Open Graph preview of ?url=
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse

from dependencies import (
    get_metadata_service,
    get_optional_owner,
    get_owner,
    get_qr_service,
    get_state_repository,
)
from errors import NotFoundError
from repositories.state_repository import StateRepository
from schemas.dto.requests.link import PreferencesRequest
from schemas.models.preferences import QrPreferences
from services.metadata_service import LinkPreview, MetadataService
from services.qr_service import QrService

router = APIRouter(tags=["qr"])


@router.get("/qrcode")
async def qr_code(
    url: str = Query(min_length=1, max_length=2048),
    owner: Optional[str] = Depends(get_optional_owner),
    state: StateRepository = Depends(get_state_repository),
    qr: QrService = Depends(get_qr_service),
) -> Response:
    prefs = await state.get_preferences(owner) if owner else QrPreferences()
    image = await qr.render(url, style=prefs.style, color_scheme=prefs.color_scheme)

    headers = {"X-QR-Degraded": "true" if image.degraded else "false"}
    if image.content is None:
        return RedirectResponse(image.source_url, status_code=302, headers=headers)
    return Response(content=image.content, media_type="image/png", headers=headers)


@router.get("/api/v1/preferences", response_model=QrPreferences)
async def get_preferences(
    owner: str = Depends(get_owner),
    state: StateRepository = Depends(get_state_repository),
) -> QrPreferences:
    return await state.get_preferences(owner)


@router.put("/api/v1/preferences", response_model=QrPreferences)
async def update_preferences(
    body: PreferencesRequest,
    owner: str = Depends(get_owner),
    state: StateRepository = Depends(get_state_repository),
) -> QrPreferences:
    return await state.set_preferences(owner, body.style, body.color_scheme)


@router.get("/api/v1/preview", response_model=LinkPreview)
async def link_preview(
    url: str = Query(min_length=1, max_length=2048),
    metadata: MetadataService = Depends(get_metadata_service),
) -> LinkPreview:
    preview = await metadata.fetch(url)
    if preview is None:
        raise NotFoundError("no preview available for this URL", field="url")
    return preview
