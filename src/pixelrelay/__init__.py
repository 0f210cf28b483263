"""pixelrelay — relay Pixeldrain files and folders to a Telegram chat.

Public re-exports
-----------------

* **Pipeline:** :class:`RelayPipeline`, :class:`BudgetGate`,
  :class:`MetadataResolver`, :class:`Notifier`, :class:`StagingArea`
* **Configuration:** :class:`RelayConfig`
* **Errors:** Every :class:`RelayError` subclass and :class:`ErrorCode`
* **Models:** resources, metadata and transfer plans

Usage::

    $ export PIXEL_LINK=https://pixeldrain.com/u/abc123
    $ export TELEGRAM_BOT_TOKEN=123456:ABC... TELEGRAM_CHAT_ID=-1001234567890
    $ pixelrelay
"""

from __future__ import annotations

__version__ = "0.3.0"

# ── Configuration ───────────────────────────────────────────────────────
from pixelrelay.config import DEFAULT_MAX_BYTES, RelayConfig

# ── Errors ──────────────────────────────────────────────────────────────
from pixelrelay.errors import (
    ArchiveFailedError,
    ConfigMissingError,
    DownloadFailedError,
    EmptyFolderError,
    ErrorCode,
    FolderFetchFailedError,
    NotifyFailedError,
    RelayError,
    RelayHTTPError,
    RelayNetworkError,
    TransferError,
    UnrecognizedLinkError,
    UploadFailedError,
)

# ── Models ──────────────────────────────────────────────────────────────
from pixelrelay.models import (
    ArchivePlan,
    DirectPlan,
    FileMeta,
    FolderListing,
    LinkFallbackPlan,
    ResourceKind,
    ResourceRef,
    RunOutcome,
    RunReport,
    TransferPlan,
)

# ── Pipeline ────────────────────────────────────────────────────────────
from pixelrelay.budget import BudgetGate
from pixelrelay.links import classify_link
from pixelrelay.notifier import Notifier, escape_markdown_v2
from pixelrelay.pipeline import RelayPipeline
from pixelrelay.resolver import MetadataResolver
from pixelrelay.staging import StagingArea, safe_filename

__all__ = [
    "__version__",
    # Configuration
    "RelayConfig",
    "DEFAULT_MAX_BYTES",
    # Errors
    "RelayError",
    "ErrorCode",
    "ConfigMissingError",
    "UnrecognizedLinkError",
    "RelayNetworkError",
    "RelayHTTPError",
    "FolderFetchFailedError",
    "EmptyFolderError",
    "TransferError",
    "DownloadFailedError",
    "ArchiveFailedError",
    "UploadFailedError",
    "NotifyFailedError",
    # Models
    "ResourceKind",
    "ResourceRef",
    "FileMeta",
    "FolderListing",
    "DirectPlan",
    "ArchivePlan",
    "LinkFallbackPlan",
    "TransferPlan",
    "RunOutcome",
    "RunReport",
    # Pipeline
    "classify_link",
    "MetadataResolver",
    "BudgetGate",
    "StagingArea",
    "safe_filename",
    "Notifier",
    "escape_markdown_v2",
    "RelayPipeline",
]
