"""
QR code rendering with graceful degradation.

The styled image (owner's colour scheme) is tried first, then a plain
black-on-white one. If the rendering service is down for both, the caller
still gets the plain image URL and a ``degraded`` flag instead of an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from errors import UpstreamUnavailableError, ValidationError
from infrastructure.qr.qr_server import QrServerRenderer
from schemas.models.preferences import COLOR_SCHEMES, QR_STYLES
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass
class QrImage:
    source_url: str
    content: Optional[bytes]
    degraded: bool = False


class QrService:
    def __init__(self, renderer: QrServerRenderer) -> None:
        self._renderer = renderer

    async def render(
        self, data: str, style: str = "square", color_scheme: str = "classic"
    ) -> QrImage:
        if not data:
            raise ValidationError("nothing to encode", field="url")
        if style not in QR_STYLES:
            raise ValidationError(f"unknown QR style: {style}", field="style")
        scheme = COLOR_SCHEMES.get(color_scheme)
        if scheme is None:
            raise ValidationError(
                f"unknown colour scheme: {color_scheme}", field="color_scheme"
            )

        styled_url = self._renderer.image_url(data, scheme.foreground, scheme.background)
        try:
            return QrImage(styled_url, await self._renderer.render(styled_url))
        except UpstreamUnavailableError as e:
            log.warning("qr_render_fallback", stage="styled", error=e.message)

        basic_url = self._renderer.image_url(data)
        try:
            return QrImage(basic_url, await self._renderer.render(basic_url), degraded=True)
        except UpstreamUnavailableError as e:
            log.warning("qr_render_fallback", stage="basic", error=e.message)

        return QrImage(basic_url, None, degraded=True)
