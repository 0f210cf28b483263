"""Archiver: bundle staged files into one ZIP."""

from __future__ import annotations

import asyncio
import zipfile
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from pixelrelay.errors import ArchiveFailedError
from pixelrelay.observability import get_logger

log = get_logger("pixelrelay.archiver")


@runtime_checkable
class Archiver(Protocol):
    """Capability: produce exactly one archive from staged files."""

    async def archive(self, sources: Sequence[Path], dest: Path) -> int:
        """Bundle *sources* into *dest* and return the archive size.

        Raises
        ------
        ArchiveFailedError
            If the archive cannot be written.
        """
        ...


class ZipArchiver:
    """Write a flat, deflate-compressed ZIP64 archive in a worker thread.

    Parameters
    ----------
    compresslevel:
        zlib level 0-9.  ``None`` uses the zlib default.
    """

    def __init__(self, compresslevel: int | None = None) -> None:
        self._compresslevel = compresslevel

    async def archive(self, sources: Sequence[Path], dest: Path) -> int:
        try:
            size = await asyncio.to_thread(self._write, list(sources), dest)
        except (OSError, zipfile.BadZipFile, ValueError) as exc:
            raise ArchiveFailedError(
                f"Creating archive {dest.name} failed: {exc}",
                context={"dest": str(dest), "file_count": len(sources)},
                cause=exc,
            ) from exc
        log.info(
            "Archive created",
            extra={
                "extra_fields": {
                    "op": "archive",
                    "dest": str(dest),
                    "file_count": len(sources),
                    "bytes": size,
                }
            },
        )
        return size

    def _write(self, sources: list[Path], dest: Path) -> int:
        with zipfile.ZipFile(
            dest,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self._compresslevel,
            allowZip64=True,
        ) as zf:
            for src in sources:
                zf.write(src, arcname=src.name)
        return dest.stat().st_size
