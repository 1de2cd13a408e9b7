"""QR image rendering via the goqr.me ``create-qr-code`` HTTP API."""

from typing import Optional
from urllib.parse import urlencode

from errors import UpstreamUnavailableError
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)


class QrServerRenderer:
    def __init__(
        self,
        http_client: HttpClient,
        base_url: str = "https://api.qrserver.com/v1/create-qr-code/",
        size: int = 400,
    ) -> None:
        self._http = http_client
        self._base_url = base_url
        self._size = size

    def image_url(
        self,
        data: str,
        foreground: Optional[str] = None,
        background: Optional[str] = None,
    ) -> str:
        params = {"size": f"{self._size}x{self._size}", "data": data}
        if foreground:
            params["color"] = foreground.lstrip("#")
        if background:
            params["bgcolor"] = background.lstrip("#")
        return f"{self._base_url}?{urlencode(params)}"

    async def render(self, image_url: str) -> bytes:
        response = await self._http.get(image_url)
        content_type = response.headers.get("Content-Type", "")
        if response.status_code != 200 or not content_type.startswith("image/"):
            log.warning(
                "qr_service_error",
                status_code=response.status_code,
                content_type=content_type,
            )
            raise UpstreamUnavailableError(
                f"QR service returned HTTP {response.status_code}"
            )
        return response.content
