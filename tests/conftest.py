"""Shared fixtures and in-memory fakes for the pixelrelay test suite.

The fakes implement the same call surface as the production capabilities
(``Fetcher``, ``Archiver``, ``Uploader``) and the Telegram wrapper, so the
pipeline can be exercised without network access.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from pixelrelay.budget import BudgetGate
from pixelrelay.config import RelayConfig
from pixelrelay.errors import ArchiveFailedError, DownloadFailedError, UploadFailedError
from pixelrelay.models import FileMeta, FolderListing
from pixelrelay.notifier import Notifier
from pixelrelay.pipeline import RelayPipeline
from pixelrelay.staging import StagingArea

FILE_BASE = "https://pixeldrain.com/api/file"


def make_meta(file_id: str, name: str | None = None, size: int | None = 10) -> FileMeta:
    return FileMeta(
        id=file_id,
        name=name or f"{file_id}.bin",
        size_bytes=size,
        source_url=f"{FILE_BASE}/{file_id}",
    )


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeTelegramAPI:
    """Records every ``sendMessage`` call."""

    def __init__(self, reply: dict[str, Any] | None = None, error: Exception | None = None):
        self.messages: list[tuple[str, str]] = []
        self.reply = reply if reply is not None else {"ok": True, "result": {}}
        self.error = error

    async def send_message(self, chat_id: str, text: str, parse_mode: str | None = "MarkdownV2"):
        if self.error is not None:
            raise self.error
        self.messages.append((chat_id, text))
        return dict(self.reply)

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.messages]


class FakeResolver:
    """Returns preset metadata; records which ids were resolved."""

    def __init__(self, file_meta: FileMeta | None = None, listing: FolderListing | None = None,
                 error: Exception | None = None):
        self.file_meta = file_meta
        self.listing = listing
        self.error = error
        self.calls: list[str] = []

    async def resolve_file(self, ref):
        self.calls.append(ref.id)
        if self.error is not None:
            raise self.error
        return self.file_meta

    async def resolve_folder(self, ref):
        self.calls.append(ref.id)
        if self.error is not None:
            raise self.error
        return self.listing


class FakeFetcher:
    """Writes ``contents[id]`` (default ``size_bytes`` zero bytes) to *dest*."""

    def __init__(self, contents: dict[str, bytes] | None = None, fail_on: str | None = None):
        self.contents = contents or {}
        self.fail_on = fail_on
        self.calls: list[tuple[str, Path]] = []

    async def fetch(self, meta: FileMeta, dest: Path) -> int:
        self.calls.append((meta.id, dest))
        if meta.id == self.fail_on:
            raise DownloadFailedError(
                f"Download of {meta.name} failed: connection reset",
                context={"name": meta.name, "url": meta.source_url},
            )
        data = self.contents.get(meta.id, b"\0" * (meta.size_bytes or 0))
        dest.write_bytes(data)
        return len(data)


class FakeArchiver:
    """Concatenates sources into *dest*, optionally padded to ``size``."""

    def __init__(self, size: int | None = None, fail: bool = False):
        self.size = size
        self.fail = fail
        self.calls: list[tuple[list[Path], Path]] = []

    async def archive(self, sources, dest: Path) -> int:
        sources = list(sources)
        self.calls.append((sources, dest))
        if self.fail:
            raise ArchiveFailedError("Creating archive failed: disk full")
        data = b"".join(p.read_bytes() for p in sources)
        if self.size is not None:
            data = b"\0" * self.size
        dest.write_bytes(data)
        return len(data)


class FakeUploader:
    """Records uploads together with the bytes present at upload time."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads: list[dict[str, Any]] = []

    async def upload(self, path: Path, caption: str | None = None):
        if self.fail:
            raise UploadFailedError(
                "Upload of archive failed: Request Entity Too Large",
                context={"path": str(path)},
            )
        self.uploads.append({"path": path, "caption": caption, "data": path.read_bytes()})
        return {"message_id": len(self.uploads)}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> RelayConfig:
    """Default test configuration with dummy credentials."""
    return RelayConfig(
        link="https://pixeldrain.com/u/abc123",
        bot_token="123456:TEST_token_abcd",
        chat_id="42",
        max_bytes=1000,
    )


@pytest.fixture
def telegram() -> FakeTelegramAPI:
    return FakeTelegramAPI()


@pytest.fixture
def notifier(telegram: FakeTelegramAPI) -> Notifier:
    return Notifier(telegram, "42", message_limit=4096, batch_limit=3000, preview_count=20)


@pytest.fixture
def staging_roots(tmp_path: Path) -> list[StagingArea]:
    """Every staging area created through ``staging_factory``."""
    return []


@pytest.fixture
def staging_factory(tmp_path: Path, staging_roots: list[StagingArea]):
    def factory() -> StagingArea:
        area = StagingArea(parent=tmp_path)
        staging_roots.append(area)
        return area

    return factory


@pytest.fixture
def make_pipeline(notifier: Notifier, staging_factory):
    """Build a pipeline around fakes; keyword args replace the defaults."""

    def build(
        *,
        resolver: FakeResolver,
        max_bytes: int = 1000,
        fetcher: FakeFetcher | None = None,
        archiver: FakeArchiver | None = None,
        uploader: FakeUploader | None = None,
    ) -> RelayPipeline:
        return RelayPipeline(
            resolver=resolver,
            gate=BudgetGate(max_bytes),
            fetcher=fetcher or FakeFetcher(),
            archiver=archiver or FakeArchiver(),
            uploader=uploader or FakeUploader(),
            notifier=notifier,
            staging_factory=staging_factory,
        )

    return build


@pytest.fixture
def fakes():
    """Access to the fake classes from test modules."""

    class _Fakes:
        Telegram = FakeTelegramAPI
        Resolver = FakeResolver
        Fetcher = FakeFetcher
        Archiver = FakeArchiver
        Uploader = FakeUploader
        meta = staticmethod(make_meta)

    return _Fakes
