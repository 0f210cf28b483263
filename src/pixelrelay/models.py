"""Data models for the relay pipeline.

All types are frozen dataclasses: a :class:`ResourceRef` is derived once
from the input link, :class:`FileMeta` / :class:`FolderListing` once by the
resolver, and exactly one transfer plan is chosen per run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ResourceKind(str, Enum):
    """What a Pixeldrain link points at."""

    FILE = "file"
    """A single file (``/u/<id>``)."""

    FOLDER = "folder"
    """A list of files (``/l/<id>``)."""


class RunOutcome(str, Enum):
    """How a successful run ended."""

    UPLOADED = "uploaded"
    """The file or archive was delivered as a document."""

    LINK_FALLBACK = "link_fallback"
    """Direct links were sent instead of the content."""


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResourceRef:
    """A classified link: the resource kind and its opaque id."""

    kind: ResourceKind
    id: str


@dataclass(frozen=True)
class FileMeta:
    """Metadata of one remote file.

    Attributes
    ----------
    id:
        Pixeldrain file id.
    name:
        Display name as reported by the host (not yet made filesystem-safe).
    size_bytes:
        Reported size, or ``None`` when the host did not report one.
    source_url:
        Direct download URL.
    """

    id: str
    name: str
    size_bytes: int | None
    source_url: str

    @property
    def size_known(self) -> bool:
        return self.size_bytes is not None


@dataclass(frozen=True)
class FolderListing:
    """Ordered members of a folder.

    Members with an unknown size count as ``0`` in :attr:`total_size_bytes`
    and are counted in :attr:`unknown_size_count`; the archive size check
    after bundling is the authoritative one.
    """

    id: str
    files: tuple[FileMeta, ...]

    @property
    def total_size_bytes(self) -> int:
        return sum(f.size_bytes or 0 for f in self.files)

    @property
    def unknown_size_count(self) -> int:
        return sum(1 for f in self.files if f.size_bytes is None)

    def __len__(self) -> int:
        return len(self.files)


# ---------------------------------------------------------------------------
# Transfer plans
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DirectPlan:
    """Download one file and upload it as-is."""

    meta: FileMeta


@dataclass(frozen=True)
class ArchivePlan:
    """Download every folder member, zip them, upload the archive."""

    listing: FolderListing


@dataclass(frozen=True)
class LinkFallbackPlan:
    """Send direct links instead of transferring bytes."""

    target: FileMeta | FolderListing
    reason: str

    @property
    def members(self) -> tuple[FileMeta, ...]:
        if isinstance(self.target, FolderListing):
            return self.target.files
        return (self.target,)


TransferPlan = Union[DirectPlan, ArchivePlan, LinkFallbackPlan]


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunReport:
    """Summary of a completed (non-fatal) run.

    Attributes
    ----------
    ref:
        The classified input link.
    plan:
        The plan chosen by the budget gate.
    outcome:
        Whether content was uploaded or links were sent.
    uploaded_bytes:
        Size of the uploaded file or archive; ``0`` on link fallback.
    reason:
        Why links were sent, when they were.
    link_count:
        Number of direct links offered on link fallback.
    """

    ref: ResourceRef
    plan: TransferPlan
    outcome: RunOutcome
    uploaded_bytes: int = 0
    reason: str | None = None
    link_count: int = 0
