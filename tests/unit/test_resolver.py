"""Tests for the metadata resolver.

Covers:
- Content-Disposition parsing (extended form preferred, simple form, absent)
- Content-Length parsing
- HEAD failures degrading to unknown name and size
- Folder listing success, HTTP failure, malformed bodies and empty folders
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pixelrelay.errors import (
    EmptyFolderError,
    FolderFetchFailedError,
    RelayHTTPError,
    RelayNetworkError,
)
from pixelrelay.models import ResourceKind, ResourceRef
from pixelrelay.resolver import (
    MetadataResolver,
    fallback_name,
    meta_from_headers,
    parse_content_disposition,
    parse_size,
)

FILE_REF = ResourceRef(ResourceKind.FILE, "abc123")
FOLDER_REF = ResourceRef(ResourceKind.FOLDER, "fold01")


def make_api(**kwargs) -> MagicMock:
    api = MagicMock()
    api.file_url.side_effect = lambda i: f"https://pixeldrain.com/api/file/{i}"
    for attr, val in kwargs.items():
        setattr(api, attr, val)
    return api


def head_response(status: int = 200, headers: dict | None = None) -> httpx.Response:
    resp = httpx.Response(status, headers=headers or {})
    resp.request = httpx.Request("HEAD", "https://pixeldrain.com/api/file/abc123")
    return resp


# ---------------------------------------------------------------------------
# Header parsing
# ---------------------------------------------------------------------------

class TestParseContentDisposition:
    def test_extended_form_is_decoded(self):
        header = "attachment; filename*=UTF-8''%E6%97%A5%E6%9C%AC.txt"
        assert parse_content_disposition(header) == "日本.txt"

    def test_extended_form_preferred_over_simple(self):
        header = "attachment; filename=\"fallback.txt\"; filename*=UTF-8''real%20name.txt"
        assert parse_content_disposition(header) == "real name.txt"

    def test_quoted_simple_form(self):
        assert parse_content_disposition('inline; filename="my file.pdf"') == "my file.pdf"

    def test_unquoted_simple_form(self):
        assert parse_content_disposition("attachment; filename=plain.zip; size=3") == "plain.zip"

    def test_case_insensitive_parameter(self):
        assert parse_content_disposition('attachment; FILENAME="A.txt"') == "A.txt"

    @pytest.mark.parametrize("header", ["", "inline", 'attachment; filename=""'])
    def test_absent_or_empty(self, header):
        assert parse_content_disposition(header) is None


class TestParseSize:
    @pytest.mark.parametrize(
        "raw,expected",
        [("500", 500), (" 42 ", 42), (0, 0), (123, 123), ("", None), ("abc", None),
         (None, None), (-1, None), ("-1", None), (True, None), (1.5, None)],
    )
    def test_values(self, raw, expected):
        assert parse_size(raw) == expected


class TestMetaFromHeaders:
    def test_all_headers(self):
        headers = httpx.Headers({
            "Content-Disposition": 'attachment; filename="x.bin"',
            "Content-Length": "500",
        })
        meta = meta_from_headers("abc123", "https://u", headers)
        assert meta.name == "x.bin"
        assert meta.size_bytes == 500
        assert meta.source_url == "https://u"

    def test_missing_headers_use_fallbacks(self):
        meta = meta_from_headers("abc123", "https://u", httpx.Headers({}))
        assert meta.name == "pixeldrain-abc123"
        assert meta.size_bytes is None


# ---------------------------------------------------------------------------
# File mode
# ---------------------------------------------------------------------------

class TestResolveFile:
    @pytest.mark.asyncio
    async def test_success(self):
        resp = head_response(headers={
            "content-disposition": "attachment; filename*=UTF-8''clip.mp4",
            "content-length": "500",
        })
        api = make_api(head_file=AsyncMock(return_value=resp))

        meta = await MetadataResolver(api).resolve_file(FILE_REF)

        api.head_file.assert_awaited_once_with("abc123")
        assert meta.id == "abc123"
        assert meta.name == "clip.mp4"
        assert meta.size_bytes == 500
        assert meta.source_url == "https://pixeldrain.com/api/file/abc123"

    @pytest.mark.asyncio
    async def test_non_success_status_degrades(self):
        api = make_api(head_file=AsyncMock(return_value=head_response(404)))

        meta = await MetadataResolver(api).resolve_file(FILE_REF)

        assert meta.name == fallback_name("abc123")
        assert meta.size_bytes is None

    @pytest.mark.asyncio
    async def test_network_error_degrades(self):
        api = make_api(head_file=AsyncMock(side_effect=RelayNetworkError("timeout")))

        meta = await MetadataResolver(api).resolve_file(FILE_REF)

        assert meta.name == "pixeldrain-abc123"
        assert not meta.size_known

    @pytest.mark.asyncio
    async def test_rejects_folder_ref(self):
        with pytest.raises(ValueError):
            await MetadataResolver(make_api()).resolve_file(FOLDER_REF)


# ---------------------------------------------------------------------------
# Folder mode
# ---------------------------------------------------------------------------

class TestResolveFolder:
    @pytest.mark.asyncio
    async def test_listing_in_order(self):
        payload = {"files": [
            {"id": "f1", "name": "b.txt", "size": 10},
            {"id": "f2", "name": "a.txt", "size": 20},
            {"id": "f3", "name": "c.txt"},
        ]}
        api = make_api(get_listing=AsyncMock(return_value=payload))

        listing = await MetadataResolver(api).resolve_folder(FOLDER_REF)

        assert listing.id == "fold01"
        assert [f.name for f in listing.files] == ["b.txt", "a.txt", "c.txt"]
        assert listing.files[2].size_bytes is None
        assert listing.total_size_bytes == 30
        assert listing.unknown_size_count == 1
        assert listing.files[0].source_url == "https://pixeldrain.com/api/file/f1"

    @pytest.mark.asyncio
    async def test_missing_name_uses_fallback(self):
        api = make_api(get_listing=AsyncMock(return_value={"files": [{"id": "f1", "size": 1}]}))
        listing = await MetadataResolver(api).resolve_folder(FOLDER_REF)
        assert listing.files[0].name == "pixeldrain-f1"

    @pytest.mark.asyncio
    async def test_http_error(self):
        err = RelayHTTPError("HTTP 404", context={"status_code": 404})
        api = make_api(get_listing=AsyncMock(side_effect=err))

        with pytest.raises(FolderFetchFailedError) as exc_info:
            await MetadataResolver(api).resolve_folder(FOLDER_REF)

        assert exc_info.value.context["status_code"] == 404
        assert "HTTP 404" in exc_info.value.message
        assert exc_info.value.cause is err

    @pytest.mark.asyncio
    async def test_network_error(self):
        api = make_api(get_listing=AsyncMock(side_effect=RelayNetworkError("reset")))
        with pytest.raises(FolderFetchFailedError):
            await MetadataResolver(api).resolve_folder(FOLDER_REF)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        api = make_api(get_listing=AsyncMock(side_effect=ValueError("bad json")))
        with pytest.raises(FolderFetchFailedError) as exc_info:
            await MetadataResolver(api).resolve_folder(FOLDER_REF)
        assert exc_info.value.context["reason"] == "malformed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"files": None}, {"files": "nope"}, {"files": {"id": "x"}}, [], "text",
         {"files": [{"name": "no-id"}]}, {"files": ["str"]}],
    )
    async def test_malformed_listing(self, payload):
        api = make_api(get_listing=AsyncMock(return_value=payload))
        with pytest.raises(FolderFetchFailedError):
            await MetadataResolver(api).resolve_folder(FOLDER_REF)

    @pytest.mark.asyncio
    async def test_empty_folder(self):
        api = make_api(get_listing=AsyncMock(return_value={"files": []}))
        with pytest.raises(EmptyFolderError) as exc_info:
            await MetadataResolver(api).resolve_folder(FOLDER_REF)
        assert exc_info.value.context["folder_id"] == "fold01"
