"""Transfer budget gate.

The gate decides, once per run, whether content is transferred or offered as
links.  The pre-transfer decision relies on reported sizes and is advisory:
unknown sizes and compression ratios are only known after the bytes exist,
so :meth:`BudgetGate.recheck_file` and :meth:`BudgetGate.recheck_archive`
check the real size before anything is uploaded.
"""

from __future__ import annotations

from pixelrelay.models import (
    ArchivePlan,
    DirectPlan,
    FileMeta,
    FolderListing,
    LinkFallbackPlan,
    TransferPlan,
)

REASON_FILE_TOO_LARGE = "too large to auto-upload"
REASON_FOLDER_TOO_LARGE = "folder larger than the upload limit"
REASON_DOWNLOAD_TOO_LARGE = "downloaded file exceeds the upload limit"
REASON_ARCHIVE_TOO_LARGE = "archive exceeds the upload limit"


class BudgetGate:
    """Compare sizes against ``max_bytes`` and choose a transfer plan."""

    def __init__(self, max_bytes: int) -> None:
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be > 0, got {max_bytes}")
        self.max_bytes = max_bytes

    def fits(self, size_bytes: int) -> bool:
        return size_bytes <= self.max_bytes

    def plan_file(self, meta: FileMeta) -> TransferPlan:
        """Direct transfer unless the reported size is over budget.

        An unknown size is attempted opportunistically.
        """
        if meta.size_known and not self.fits(meta.size_bytes):
            return LinkFallbackPlan(target=meta, reason=REASON_FILE_TOO_LARGE)
        return DirectPlan(meta=meta)

    def plan_folder(self, listing: FolderListing) -> TransferPlan:
        """Archive the folder unless its listed total is over budget."""
        if not self.fits(listing.total_size_bytes):
            return LinkFallbackPlan(target=listing, reason=REASON_FOLDER_TOO_LARGE)
        return ArchivePlan(listing=listing)

    def recheck_file(self, meta: FileMeta, actual_bytes: int) -> LinkFallbackPlan | None:
        """Return a fallback when the downloaded file is over budget."""
        if self.fits(actual_bytes):
            return None
        return LinkFallbackPlan(target=meta, reason=REASON_DOWNLOAD_TOO_LARGE)

    def recheck_archive(
        self,
        listing: FolderListing,
        archive_bytes: int,
    ) -> LinkFallbackPlan | None:
        """Return a fallback over the original members when the archive is over budget."""
        if self.fits(archive_bytes):
            return None
        return LinkFallbackPlan(target=listing, reason=REASON_ARCHIVE_TOO_LARGE)
