"""Shared async HTTP client with an explicit upper bound on every call."""

from typing import Any

import httpx

from errors import UpstreamUnavailableError


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a configurable timeout.

    One instance per external service keeps timeouts independently configurable.
    Transport failures and timeouts surface as ``UpstreamUnavailableError``
    tagged with the service name; HTTP status handling is left to callers.
    """

    def __init__(self, service: str, timeout: float = 5.0, **kwargs: Any) -> None:
        self.service = service
        self._client = httpx.AsyncClient(timeout=timeout, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._send("POST", url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._send("GET", url, **kwargs)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError(
                f"{self.service} timed out", details={"service": self.service}
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(
                f"{self.service} request failed: {type(e).__name__}",
                details={"service": self.service},
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
