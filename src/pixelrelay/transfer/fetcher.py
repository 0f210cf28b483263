"""Staging fetcher: download one remote file to a local path."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from pixelrelay.api.transport import AsyncHttpTransport
from pixelrelay.errors import (
    DownloadFailedError,
    RelayError,
    RelayHTTPError,
    RelayNetworkError,
)
from pixelrelay.models import FileMeta
from pixelrelay.observability import get_logger

log = get_logger("pixelrelay.fetcher")


@runtime_checkable
class Fetcher(Protocol):
    """Capability: copy a remote file into the staging area."""

    async def fetch(self, meta: FileMeta, dest: Path) -> int:
        """Write the content of *meta* to *dest* and return its size.

        *dest* is always rewritten from scratch.

        Raises
        ------
        DownloadFailedError
            If the transfer cannot complete.
        """
        ...


class HttpFetcher:
    """Stream ``meta.source_url`` to disk through :class:`AsyncHttpTransport`."""

    def __init__(self, transport: AsyncHttpTransport) -> None:
        self._transport = transport

    async def fetch(self, meta: FileMeta, dest: Path) -> int:
        log.info(
            "Download started",
            extra={"extra_fields": {"op": "fetch", "resource_id": meta.id, "dest": str(dest)}},
        )
        try:
            with open(dest, "wb") as fh:
                written = await self._transport.stream_to(meta.source_url, fh)
        except (RelayNetworkError, RelayHTTPError, OSError) as exc:
            detail = exc.message if isinstance(exc, RelayError) else str(exc)
            raise DownloadFailedError(
                f"Download of {meta.name} failed: {detail}",
                context={"name": meta.name, "url": meta.source_url, "dest": str(dest)},
                cause=exc,
                fallback=(meta,),
            ) from exc

        log.info(
            "Download complete",
            extra={
                "extra_fields": {
                    "op": "fetch",
                    "resource_id": meta.id,
                    "bytes": written,
                    "reported_bytes": meta.size_bytes,
                }
            },
        )
        return written
