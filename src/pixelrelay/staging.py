"""Self-cleaning temporary work area for downloaded bytes.

A :class:`StagingArea` is created only when a transfer plan needs local
bytes and is torn down exactly once when its ``async with`` block exits,
whether the run succeeded or failed.  Layout::

    <tmp>/pixeldrain-XXXX/
        files/      staged downloads (flat, filesystem-safe names)
        archive/    the single archive built from ``files/``

Keeping the archive outside ``files/`` guarantees it never bundles itself.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path

from pixelrelay.observability import get_logger

log = get_logger("pixelrelay.staging")

_UNSAFE_CHARS = str.maketrans({"/": "_", "\\": "_", "\x00": "_"})

NAME_MAX_BYTES = 255
"""Longest file name (in UTF-8 bytes) most filesystems accept."""

_SUFFIX_RESERVE = 16
"""Bytes kept free for the `` (N)`` de-duplication suffix."""


def _split_extension(name: str) -> tuple[str, str]:
    stem, dot, ext = name.rpartition(".")
    if not stem:
        return name, ""
    return stem, dot + ext


def _truncate_utf8(text: str, max_bytes: int) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    # A cut inside a multi-byte sequence drops the partial character.
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def _fit_name(name: str, max_bytes: int) -> str:
    """Shorten *name* to *max_bytes*, keeping its extension when it fits."""
    if len(name.encode("utf-8")) <= max_bytes:
        return name
    stem, ext = _split_extension(name)
    room = max_bytes - len(ext.encode("utf-8"))
    if room < 1:
        return _truncate_utf8(name, max_bytes)
    return _truncate_utf8(stem, room) + ext


def safe_filename(name: str, fallback: str = "file") -> str:
    """Make a remote-provided *name* usable as a single path component.

    Path separators and NUL are replaced with ``_``; names that would
    resolve to the directory itself or its parent fall back to *fallback*.
    Long names are cut (extension kept) so that the result plus a
    de-duplication suffix stays within :data:`NAME_MAX_BYTES`.

    Examples
    --------
    >>> safe_filename("../../etc/passwd")
    '.._.._etc_passwd'
    >>> safe_filename("..")
    'file'
    """
    cleaned = (name or "").translate(_UNSAFE_CHARS).strip()
    cleaned = _fit_name(cleaned, NAME_MAX_BYTES - _SUFFIX_RESERVE).strip()
    if cleaned in ("", ".", ".."):
        return fallback
    return cleaned


class StagingArea:
    """Exclusively owned temporary directory with guaranteed teardown.

    Parameters
    ----------
    prefix:
        Prefix of the temporary directory name.
    parent:
        Directory to create it in.  Defaults to the system temp dir.
    """

    def __init__(self, prefix: str = "pixeldrain-", parent: str | os.PathLike | None = None) -> None:
        self._prefix = prefix
        self._parent = parent
        self._root: Path | None = None
        self._used_names: set[str] = set()
        self._closed = False

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("staging area is not open")
        return self._root

    @property
    def files_dir(self) -> Path:
        return self.root / "files"

    @property
    def archive_dir(self) -> Path:
        return self.root / "archive"

    def open(self) -> Path:
        """Create the directory tree.  Idempotent while open."""
        if self._closed:
            raise RuntimeError("staging area already closed")
        if self._root is None:
            self._root = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._parent))
            self.files_dir.mkdir()
            self.archive_dir.mkdir()
            log.debug(
                "Staging area created",
                extra={"extra_fields": {"op": "staging", "path": str(self._root)}},
            )
        return self._root

    def path_for(self, name: str, fallback: str = "file") -> Path:
        """Return a fresh destination path in ``files/`` for remote *name*.

        Names are made safe with :func:`safe_filename`; a name already handed
        out in this run gets a `` (2)``, `` (3)`` ... suffix before its
        extension so two members never overwrite each other.
        """
        base = safe_filename(name, fallback)
        candidate = base
        stem, ext = _split_extension(base)
        counter = 2
        while candidate in self._used_names:
            candidate = f"{stem} ({counter}){ext}"
            counter += 1
        self._used_names.add(candidate)
        return self.files_dir / candidate

    def archive_path(self, name: str) -> Path:
        return self.archive_dir / safe_filename(name, "archive.zip")

    def discard(self, path: Path) -> None:
        """Delete one staged artifact; a missing file is not an error."""
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    async def close(self) -> None:
        """Remove the directory tree.  Runs at most once; never raises."""
        if self._closed:
            return
        self._closed = True
        root, self._root = self._root, None
        if root is None:
            return
        await asyncio.to_thread(_remove_tree, root)

    async def __aenter__(self) -> StagingArea:
        self.open()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


def _remove_tree(root: Path) -> None:
    try:
        shutil.rmtree(root)
    except FileNotFoundError:
        pass
    except OSError as exc:
        log.warning(
            "Staging area cleanup incomplete",
            extra={"extra_fields": {"op": "staging", "path": str(root), "error": str(exc)}},
        )
    else:
        log.debug(
            "Staging area removed",
            extra={"extra_fields": {"op": "staging", "path": str(root)}},
        )
