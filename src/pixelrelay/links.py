"""Pixeldrain link classification.

Two patterns are recognised, file links (``/u/<id>``) and folder links
(``/l/<id>``), with optional ``www.`` and either scheme.  The link may be
embedded in surrounding text.  Scheme and host match case-insensitively;
the id is returned exactly as written.
"""

from __future__ import annotations

import re

from pixelrelay.errors import UnrecognizedLinkError
from pixelrelay.models import ResourceKind, ResourceRef

_HOST = r"(?i:https?://(?:www\.)?pixeldrain\.com)"

FILE_LINK_RE = re.compile(_HOST + r"/u/([A-Za-z0-9_-]+)")
FOLDER_LINK_RE = re.compile(_HOST + r"/l/([A-Za-z0-9_-]+)")

_PATTERNS: tuple[tuple[ResourceKind, re.Pattern[str]], ...] = (
    (ResourceKind.FILE, FILE_LINK_RE),
    (ResourceKind.FOLDER, FOLDER_LINK_RE),
)


def classify_link(text: str) -> ResourceRef:
    """Return the :class:`ResourceRef` referenced by *text*.

    The file pattern is tried before the folder pattern.

    Raises
    ------
    UnrecognizedLinkError
        If *text* contains neither a file nor a folder link.
    """
    for kind, pattern in _PATTERNS:
        match = pattern.search(text or "")
        if match:
            return ResourceRef(kind=kind, id=match.group(1))
    raise UnrecognizedLinkError(
        "No pixeldrain link found in the input",
        context={"link": text},
    )
