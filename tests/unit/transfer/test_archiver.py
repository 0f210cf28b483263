"""Tests for ZipArchiver against real files."""

from __future__ import annotations

import zipfile

import pytest

from pixelrelay.errors import ArchiveFailedError
from pixelrelay.transfer import Archiver, ZipArchiver


@pytest.fixture
def sources(tmp_path):
    src_dir = tmp_path / "files"
    src_dir.mkdir()
    paths = []
    for name, data in [("b.txt", b"bbbb" * 100), ("a.txt", b"a"), ("empty.bin", b"")]:
        path = src_dir / name
        path.write_bytes(data)
        paths.append(path)
    return paths


class TestZipArchiver:
    def test_satisfies_protocol(self):
        assert isinstance(ZipArchiver(), Archiver)

    @pytest.mark.asyncio
    async def test_flat_archive_with_all_members(self, tmp_path, sources):
        dest = tmp_path / "out.zip"

        size = await ZipArchiver().archive(sources, dest)

        assert size == dest.stat().st_size
        with zipfile.ZipFile(dest) as zf:
            assert zf.namelist() == ["b.txt", "a.txt", "empty.bin"]
            assert zf.read("b.txt") == b"bbbb" * 100
            assert zf.read("empty.bin") == b""
            assert zf.getinfo("b.txt").compress_type == zipfile.ZIP_DEFLATED

    @pytest.mark.asyncio
    async def test_compression_level(self, tmp_path, sources):
        dest = tmp_path / "stored.zip"
        await ZipArchiver(compresslevel=0).archive(sources, dest)
        with zipfile.ZipFile(dest) as zf:
            assert zf.testzip() is None

    @pytest.mark.asyncio
    async def test_missing_source_raises(self, tmp_path, sources):
        with pytest.raises(ArchiveFailedError) as exc_info:
            await ZipArchiver().archive([*sources, tmp_path / "nope.txt"], tmp_path / "x.zip")
        assert isinstance(exc_info.value.cause, OSError)
        assert exc_info.value.context["file_count"] == 4

    @pytest.mark.asyncio
    async def test_unwritable_destination_raises(self, tmp_path, sources):
        with pytest.raises(ArchiveFailedError):
            await ZipArchiver().archive(sources, tmp_path / "no-dir" / "x.zip")
