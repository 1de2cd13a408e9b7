"""
Link preview metadata (Open Graph title, description, image).

Previews are cached for a week under ``meta:{url}``; misses fetch the page
with a short timeout. Anything that goes wrong yields ``None``: a preview is
decoration, never a reason to fail link creation.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from bs4 import BeautifulSoup
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from errors import UpstreamUnavailableError
from infrastructure.http_client import HttpClient
from infrastructure.kv.protocol import KeyValueStore
from shared.logging import get_logger
from shared.validators import extract_hostname

log = get_logger(__name__)

METADATA_TTL_SECONDS = 7 * 24 * 3600
MAX_HTML_BYTES = 512 * 1024


class LinkPreview(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    domain: str


def metadata_key(url: str) -> str:
    return f"meta:{quote(url, safe='')[:200]}"


def _meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"property": name}) or soup.find(
        "meta", attrs={"name": name}
    )
    if tag is None:
        return None
    content = tag.get("content")
    return content.strip() if content and content.strip() else None


def parse_preview(html: str, domain: str) -> LinkPreview:
    soup = BeautifulSoup(html, "html.parser")
    title = _meta_content(soup, "og:title")
    if title is None and soup.title and soup.title.string:
        title = soup.title.string.strip() or None
    return LinkPreview(
        title=title,
        description=_meta_content(soup, "og:description")
        or _meta_content(soup, "description"),
        image=_meta_content(soup, "og:image"),
        domain=domain,
    )


class MetadataService:
    def __init__(self, store: KeyValueStore, http_client: HttpClient) -> None:
        self._store = store
        self._http = http_client

    async def fetch(self, url: str) -> Optional[LinkPreview]:
        domain = extract_hostname(url)
        if domain is None:
            return None

        key = metadata_key(url)
        cached = await self._store.get_json(key)
        if isinstance(cached, dict):
            try:
                return LinkPreview.model_validate(cached)
            except PydanticValidationError:
                log.warning("metadata_cache_corrupt", key=key)

        try:
            response = await self._http.get(
                url,
                headers={
                    "User-Agent": "Mozilla/5.0 (compatible; snaplink/1.0)",
                    "Accept": "text/html",
                },
                follow_redirects=True,
            )
        except UpstreamUnavailableError as e:
            log.info("metadata_fetch_failed", domain=domain, error=e.message)
            return None

        if response.status_code != 200:
            return None
        if "text/html" not in response.headers.get("Content-Type", ""):
            return None

        preview = parse_preview(response.text[:MAX_HTML_BYTES], domain)
        if preview.title or preview.description:
            await self._store.put(
                key, preview.model_dump_json(), ttl_seconds=METADATA_TTL_SECONDS
            )
        return preview
