"""Tests for pixelrelay.links.classify_link."""

from __future__ import annotations

import pytest

from pixelrelay.errors import ErrorCode, UnrecognizedLinkError
from pixelrelay.links import classify_link
from pixelrelay.models import ResourceKind, ResourceRef


class TestClassifyFile:
    def test_https_file_link(self):
        assert classify_link("https://pixeldrain.com/u/abc123") == ResourceRef(
            ResourceKind.FILE, "abc123"
        )

    def test_http_and_www(self):
        ref = classify_link("http://www.pixeldrain.com/u/X_y-9")
        assert ref.kind is ResourceKind.FILE
        assert ref.id == "X_y-9"

    def test_host_is_case_insensitive(self):
        ref = classify_link("HTTPS://PixelDrain.COM/u/abc")
        assert ref == ResourceRef(ResourceKind.FILE, "abc")

    def test_id_case_is_preserved(self):
        assert classify_link("https://pixeldrain.com/u/AbCdEf").id == "AbCdEf"

    def test_link_embedded_in_text(self):
        ref = classify_link("please grab https://pixeldrain.com/u/q1w2e3?download thanks")
        assert ref == ResourceRef(ResourceKind.FILE, "q1w2e3")

    def test_file_pattern_wins_when_both_present(self):
        ref = classify_link("https://pixeldrain.com/l/fold https://pixeldrain.com/u/file")
        assert ref == ResourceRef(ResourceKind.FILE, "file")


class TestClassifyFolder:
    def test_folder_link(self):
        assert classify_link("https://pixeldrain.com/l/Fold01") == ResourceRef(
            ResourceKind.FOLDER, "Fold01"
        )

    def test_trailing_path_is_ignored(self):
        assert classify_link("https://pixeldrain.com/l/abc/extra").id == "abc"


class TestUnrecognized:
    @pytest.mark.parametrize(
        "link",
        [
            "",
            "not a link",
            "https://example.com/u/abc123",
            "https://pixeldrain.com/x/abc123",
            "https://pixeldrain.com/u/",
            "ftp://pixeldrain.com/u/abc123",
            "https://pixeldrain.com.evil.net/U/abc",
        ],
    )
    def test_raises(self, link):
        with pytest.raises(UnrecognizedLinkError) as exc_info:
            classify_link(link)
        assert exc_info.value.code == ErrorCode.UNRECOGNIZED_LINK
        assert exc_info.value.context["link"] == link

    def test_path_segment_is_case_sensitive(self):
        with pytest.raises(UnrecognizedLinkError):
            classify_link("https://pixeldrain.com/U/abc123")
