"""Unit tests for QR rendering fallbacks and link preview metadata."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from errors import UpstreamUnavailableError, ValidationError
from infrastructure.qr.qr_server import QrServerRenderer
from services.metadata_service import MetadataService, metadata_key, parse_preview
from services.qr_service import QrService

PAGE_HTML = """
<html>
  <head>
    <title>Fallback title</title>
    <meta property="og:title" content="Example Domain">
    <meta name="description" content="An example page">
    <meta property="og:image" content="https://example.com/cover.png">
  </head>
  <body></body>
</html>
"""


def _html_response(html=PAGE_HTML, status_code=200, content_type="text/html; charset=utf-8"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.headers = {"Content-Type": content_type}
    resp.text = html
    return resp


# ── QrService ─────────────────────────────────────────────────────────────────


class TestQrService:
    def _service(self, *render_results):
        renderer = QrServerRenderer(AsyncMock(), base_url="https://qr.test/")
        renderer.render = AsyncMock(side_effect=list(render_results))
        return QrService(renderer), renderer

    async def test_styled_image(self):
        service, renderer = self._service(b"styled")
        image = await service.render("https://snap.link/Ab3dE9", "rounded", "blue")
        assert image.content == b"styled"
        assert image.degraded is False
        assert "color=1e40af" in image.source_url
        renderer.render.assert_awaited_once()

    async def test_falls_back_to_basic_image(self):
        service, renderer = self._service(UpstreamUnavailableError("qr down"), b"basic")
        image = await service.render("https://snap.link/Ab3dE9", color_scheme="green")
        assert image.content == b"basic"
        assert image.degraded is True
        assert "color=" not in image.source_url
        assert renderer.render.await_count == 2

    async def test_both_fail_returns_url_only(self):
        service, _ = self._service(
            UpstreamUnavailableError("qr down"), UpstreamUnavailableError("qr down")
        )
        image = await service.render("https://snap.link/Ab3dE9")
        assert image.content is None
        assert image.degraded is True
        assert image.source_url.startswith("https://qr.test/?")

    @pytest.mark.parametrize(
        "data, style, scheme",
        [("", "square", "classic"), ("x", "hexagon", "classic"), ("x", "square", "neon")],
        ids=["no_data", "bad_style", "bad_scheme"],
    )
    async def test_invalid_input(self, data, style, scheme):
        service, renderer = self._service()
        with pytest.raises(ValidationError):
            await service.render(data, style, scheme)
        renderer.render.assert_not_called()


# ── parse_preview ─────────────────────────────────────────────────────────────


class TestParsePreview:
    def test_open_graph(self):
        preview = parse_preview(PAGE_HTML, "example.com")
        assert preview.title == "Example Domain"
        assert preview.description == "An example page"
        assert preview.image == "https://example.com/cover.png"
        assert preview.domain == "example.com"

    def test_title_tag_fallback(self):
        preview = parse_preview("<html><title> Plain </title></html>", "example.com")
        assert preview.title == "Plain"
        assert preview.description is None
        assert preview.image is None

    def test_empty_document(self):
        preview = parse_preview("", "example.com")
        assert preview.title is None


def test_metadata_key_is_url_encoded_and_truncated():
    assert metadata_key("https://a.b/c?d=1") == "meta:https%3A%2F%2Fa.b%2Fc%3Fd%3D1"
    assert len(metadata_key("https://example.com/" + "x" * 500)) == len("meta:") + 200


# ── MetadataService ───────────────────────────────────────────────────────────


class TestMetadataService:
    async def test_fetch_and_cache(self, store, redis):
        http = AsyncMock()
        http.get.return_value = _html_response()
        service = MetadataService(store, http)

        preview = await service.fetch("https://example.com/")
        again = await service.fetch("https://example.com/")

        assert preview.title == "Example Domain"
        assert again == preview
        http.get.assert_awaited_once()
        assert http.get.call_args.kwargs["follow_redirects"] is True
        ttl = await redis.ttl(metadata_key("https://example.com/"))
        assert 0 < ttl <= 7 * 24 * 3600

    async def test_upstream_failure_returns_none(self, store):
        http = AsyncMock()
        http.get.side_effect = UpstreamUnavailableError("metadata timed out")
        assert await MetadataService(store, http).fetch("https://example.com/") is None

    @pytest.mark.parametrize(
        "status, content_type",
        [(404, "text/html"), (200, "application/pdf")],
        ids=["not_found", "not_html"],
    )
    async def test_unusable_response_returns_none(self, store, status, content_type):
        http = AsyncMock()
        http.get.return_value = _html_response(status_code=status, content_type=content_type)
        assert await MetadataService(store, http).fetch("https://example.com/") is None

    async def test_empty_preview_not_cached(self, store, redis):
        http = AsyncMock()
        http.get.return_value = _html_response("<html><body>hi</body></html>")
        preview = await MetadataService(store, http).fetch("https://example.com/")
        assert preview.title is None
        assert await redis.get(metadata_key("https://example.com/")) is None

    async def test_non_http_url_skipped(self, store):
        http = AsyncMock()
        assert await MetadataService(store, http).fetch("mailto:x@example.com") is None
        http.get.assert_not_called()
