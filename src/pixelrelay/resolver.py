"""Metadata resolution for files and folders.

File mode never downloads content: a ``HEAD`` request supplies the display
name (``Content-Disposition``) and size (``Content-Length``).  A failed
HEAD request is not fatal; the run continues with a synthesized name and an
unknown size.

Folder mode fetches the JSON listing and turns each member into a
:class:`FileMeta`, preserving listing order.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from pixelrelay.api.pixeldrain import PixeldrainAPI
from pixelrelay.errors import (
    EmptyFolderError,
    FolderFetchFailedError,
    RelayHTTPError,
    RelayNetworkError,
)
from pixelrelay.models import FileMeta, FolderListing, ResourceKind, ResourceRef
from pixelrelay.observability import get_logger

log = get_logger("pixelrelay.resolver")

NAME_PREFIX = "pixeldrain"

_EXTENDED_NAME_RE = re.compile(r"filename\*\s*=\s*UTF-8''([^;]+)", re.IGNORECASE)
_SIMPLE_NAME_RE = re.compile(r'filename\s*=\s*(?:"([^"]*)"|([^;]+))', re.IGNORECASE)


def fallback_name(resource_id: str) -> str:
    """Name used when the host does not report one."""
    return f"{NAME_PREFIX}-{resource_id}"


def parse_content_disposition(header: str) -> str | None:
    """Extract the file name from a ``Content-Disposition`` value.

    The RFC 5987 extended form (``filename*=UTF-8''...``) wins over the
    plain ``filename=`` form.  Returns ``None`` when neither is present or
    the name is empty.

    Examples
    --------
    >>> parse_content_disposition("attachment; filename*=UTF-8''na%C3%AFve.txt")
    'naïve.txt'
    >>> parse_content_disposition('inline; filename="report.pdf"')
    'report.pdf'
    """
    if not header:
        return None
    match = _EXTENDED_NAME_RE.search(header)
    if match:
        name = unquote(match.group(1).strip(), encoding="utf-8", errors="replace")
        if name:
            return name
    match = _SIMPLE_NAME_RE.search(header)
    if match:
        name = (match.group(1) if match.group(1) is not None else match.group(2)).strip()
        if name:
            return name
    return None


def parse_size(value: Any) -> int | None:
    """Return *value* as a non-negative ``int`` size, or ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def meta_from_headers(
    file_id: str,
    source_url: str,
    headers: Mapping[str, str],
) -> FileMeta:
    """Build a :class:`FileMeta` from HEAD response headers."""
    name = parse_content_disposition(headers.get("content-disposition", "")) or fallback_name(
        file_id
    )
    return FileMeta(
        id=file_id,
        name=name,
        size_bytes=parse_size(headers.get("content-length")),
        source_url=source_url,
    )


class MetadataResolver:
    """Resolve a :class:`ResourceRef` into file or folder metadata.

    Parameters
    ----------
    api:
        A :class:`PixeldrainAPI` instance.
    """

    def __init__(self, api: PixeldrainAPI) -> None:
        self._api = api

    async def resolve_file(self, ref: ResourceRef) -> FileMeta:
        """Look up a single file.  Never raises when the HEAD request fails."""
        if ref.kind is not ResourceKind.FILE:
            raise ValueError(f"expected a file reference, got {ref.kind.value}")
        url = self._api.file_url(ref.id)
        unknown = FileMeta(
            id=ref.id, name=fallback_name(ref.id), size_bytes=None, source_url=url,
        )
        try:
            response = await self._api.head_file(ref.id)
        except RelayNetworkError as exc:
            log.warning(
                "Metadata request failed; size cannot be pre-validated",
                extra={"extra_fields": {"op": "head", "resource_id": ref.id, "error": str(exc)}},
            )
            return unknown

        if not response.is_success:
            log.warning(
                "Metadata request returned non-success status; size cannot be pre-validated",
                extra={
                    "extra_fields": {
                        "op": "head",
                        "resource_id": ref.id,
                        "status_code": response.status_code,
                    }
                },
            )
            return unknown

        meta = meta_from_headers(ref.id, url, response.headers)
        log.info(
            "File metadata resolved",
            extra={
                "extra_fields": {
                    "op": "head",
                    "resource_id": ref.id,
                    "name": meta.name,
                    "size_bytes": meta.size_bytes,
                }
            },
        )
        return meta

    async def resolve_folder(self, ref: ResourceRef) -> FolderListing:
        """Fetch the folder listing.

        Raises
        ------
        FolderFetchFailedError
            On a non-success status, a transport failure, or a malformed body.
        EmptyFolderError
            If the listing contains no files.
        """
        if ref.kind is not ResourceKind.FOLDER:
            raise ValueError(f"expected a folder reference, got {ref.kind.value}")
        try:
            payload = await self._api.get_listing(ref.id)
        except RelayHTTPError as exc:
            raise FolderFetchFailedError(
                f"Failed to read folder {ref.id}: HTTP {exc.status_code}",
                context={"folder_id": ref.id, "status_code": exc.status_code},
                cause=exc,
            ) from exc
        except RelayNetworkError as exc:
            raise FolderFetchFailedError(
                f"Failed to read folder {ref.id}: {exc.message}",
                context={"folder_id": ref.id, "reason": "network"},
                cause=exc,
            ) from exc
        except ValueError as exc:
            raise FolderFetchFailedError(
                f"Failed to read folder {ref.id}: response is not JSON",
                context={"folder_id": ref.id, "reason": "malformed"},
                cause=exc,
            ) from exc

        files = payload.get("files") if isinstance(payload, dict) else None
        if not isinstance(files, list):
            raise FolderFetchFailedError(
                f"Failed to read folder {ref.id}: listing has no file list",
                context={"folder_id": ref.id, "reason": "malformed"},
            )
        if not files:
            raise EmptyFolderError(
                "Folder appears empty or returned no files",
                context={"folder_id": ref.id},
            )

        members: list[FileMeta] = []
        for index, entry in enumerate(files):
            if not isinstance(entry, dict) or not entry.get("id"):
                raise FolderFetchFailedError(
                    f"Failed to read folder {ref.id}: entry {index} has no file id",
                    context={"folder_id": ref.id, "reason": "malformed", "index": index},
                )
            file_id = str(entry["id"])
            members.append(
                FileMeta(
                    id=file_id,
                    name=str(entry.get("name") or fallback_name(file_id)),
                    size_bytes=parse_size(entry.get("size")),
                    source_url=self._api.file_url(file_id),
                )
            )

        listing = FolderListing(id=ref.id, files=tuple(members))
        log.info(
            "Folder listing resolved",
            extra={
                "extra_fields": {
                    "op": "list",
                    "resource_id": ref.id,
                    "files": len(listing),
                    "total_size_bytes": listing.total_size_bytes,
                    "unknown_sizes": listing.unknown_size_count,
                }
            },
        )
        return listing
