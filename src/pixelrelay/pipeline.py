"""Size-gated transfer pipeline.

One link is processed per run::

    classify -> resolve -> plan --+--> fetch -> (archive) -> recheck -> upload
                                  +--> link fallback

Status messages are sent at every transition.  Stages run one after the
other; folder members are fetched sequentially in listing order.  Local
bytes only exist inside a :class:`StagingArea`, which is created when a
transfer plan is chosen and removed when the plan finishes, on every path.

Fatal errors propagate to the caller (see :mod:`pixelrelay.cli`), which
sends the single final error message.
"""

from __future__ import annotations

from collections.abc import Callable

from pixelrelay.budget import BudgetGate
from pixelrelay.errors import TransferError
from pixelrelay.links import classify_link
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
)
from pixelrelay.notifier import Notifier
from pixelrelay.observability import MetricsHook, NoopMetricsHook, get_logger
from pixelrelay.resolver import MetadataResolver
from pixelrelay.staging import StagingArea
from pixelrelay.transfer import Archiver, Fetcher, Uploader

log = get_logger("pixelrelay.pipeline")

FILE_CAPTION = "Uploaded from Pixeldrain: {name}"
FOLDER_CAPTION = "Pixeldrain folder {id}"
ARCHIVE_NAME = "pixeldrain-folder-{id}.zip"


class RelayPipeline:
    """Relay one Pixeldrain link to a chat.

    Parameters
    ----------
    resolver:
        Metadata source for files and folders.
    gate:
        Transfer budget gate.
    fetcher, archiver, uploader:
        Transfer capabilities.
    notifier:
        Status message sender.
    staging_factory:
        Zero-argument callable returning a fresh :class:`StagingArea`.
    metrics:
        Optional metrics backend.
    """

    def __init__(
        self,
        *,
        resolver: MetadataResolver,
        gate: BudgetGate,
        fetcher: Fetcher,
        archiver: Archiver,
        uploader: Uploader,
        notifier: Notifier,
        staging_factory: Callable[[], StagingArea] = StagingArea,
        metrics: MetricsHook | None = None,
    ) -> None:
        self._resolver = resolver
        self._gate = gate
        self._fetcher = fetcher
        self._archiver = archiver
        self._uploader = uploader
        self._notifier = notifier
        self._staging_factory = staging_factory
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def run(self, link: str) -> RunReport:
        """Process *link* end to end.

        Raises
        ------
        UnrecognizedLinkError
            Before any network call, if *link* is not a Pixeldrain link.
        RelayError
            Any other fatal condition (see :mod:`pixelrelay.errors`).
        """
        ref = classify_link(link)
        log.info(
            "Link classified",
            extra={"extra_fields": {"op": "classify", "kind": ref.kind.value, "resource_id": ref.id}},
        )
        await self._notifier.run_started()
        if ref.kind is ResourceKind.FILE:
            return await self._handle_file(ref)
        return await self._handle_folder(ref)

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    async def _handle_file(self, ref: ResourceRef) -> RunReport:
        meta = await self._resolver.resolve_file(ref)
        plan = self._gate.plan_file(meta)
        self._log_plan(ref, plan)

        if isinstance(plan, LinkFallbackPlan):
            await self._notifier.file_too_large(meta, self._gate.max_bytes)
            return self._fallback(ref, plan, plan)

        async with self._staging_factory() as staging:
            dest = staging.path_for(meta.name, fallback=f"pixeldrain-{meta.id}")
            await self._notifier.download_started(meta)
            actual = await self._fetch(meta, dest)

            over = self._gate.recheck_file(meta, actual)
            if over is not None:
                staging.discard(dest)
                await self._notifier.download_too_large(meta, actual)
                return self._fallback(ref, plan, over)

            await self._notifier.upload_started(meta)
            await self._upload(dest, FILE_CAPTION.format(name=meta.name), (meta,))
            await self._notifier.upload_succeeded(meta)
            return RunReport(
                ref=ref, plan=plan, outcome=RunOutcome.UPLOADED, uploaded_bytes=actual,
            )

    # ------------------------------------------------------------------
    # Folder
    # ------------------------------------------------------------------

    async def _handle_folder(self, ref: ResourceRef) -> RunReport:
        listing = await self._resolver.resolve_folder(ref)
        plan = self._gate.plan_folder(listing)
        self._log_plan(ref, plan)

        if isinstance(plan, LinkFallbackPlan):
            await self._notifier.folder_too_large(listing, self._gate.max_bytes)
            return self._fallback(ref, plan, plan)

        async with self._staging_factory() as staging:
            await self._notifier.folder_download_started(listing)
            staged = []
            for meta in listing.files:
                dest = staging.path_for(meta.name, fallback=f"pixeldrain-{meta.id}")
                await self._fetch(meta, dest)
                staged.append(dest)

            archive = staging.archive_path(ARCHIVE_NAME.format(id=listing.id))
            archive_bytes = await self._archive(staged, archive, listing)

            over = self._gate.recheck_archive(listing, archive_bytes)
            if over is not None:
                staging.discard(archive)
                await self._notifier.archive_too_large(listing, archive_bytes)
                return self._fallback(ref, plan, over)

            await self._notifier.archive_upload_started(archive_bytes)
            await self._upload(archive, FOLDER_CAPTION.format(id=listing.id), listing.files)
            await self._notifier.archive_upload_succeeded()
            return RunReport(
                ref=ref, plan=plan, outcome=RunOutcome.UPLOADED, uploaded_bytes=archive_bytes,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _fetch(self, meta: FileMeta, dest) -> int:
        try:
            return await self._fetcher.fetch(meta, dest)
        except TransferError as exc:
            if not exc.fallback:
                exc.fallback = (meta,)
            raise

    async def _archive(self, staged, archive, listing: FolderListing) -> int:
        try:
            return await self._archiver.archive(staged, archive)
        except TransferError as exc:
            # Every member is offered as a link when bundling fails.
            exc.fallback = listing.files
            raise

    async def _upload(self, path, caption: str, members: tuple[FileMeta, ...]) -> None:
        try:
            await self._uploader.upload(path, caption=caption)
        except TransferError as exc:
            exc.fallback = members
            raise

    def _fallback(self, ref: ResourceRef, plan, fallback: LinkFallbackPlan) -> RunReport:
        links = len(fallback.members)
        self._metrics.increment("pixelrelay.fallback_total", tags={"kind": ref.kind.value})
        self._metrics.increment(
            "pixelrelay.fallback_links", value=links, tags={"kind": ref.kind.value},
        )
        log.info(
            "Sent direct links instead of content",
            extra={
                "extra_fields": {
                    "op": "fallback",
                    "resource_id": ref.id,
                    "reason": fallback.reason,
                    "links": links,
                }
            },
        )
        return RunReport(
            ref=ref,
            plan=plan,
            outcome=RunOutcome.LINK_FALLBACK,
            reason=fallback.reason,
            link_count=links,
        )

    def _log_plan(self, ref: ResourceRef, plan) -> None:
        name = {
            DirectPlan: "direct",
            ArchivePlan: "archive",
            LinkFallbackPlan: "link_fallback",
        }[type(plan)]
        log.info(
            "Transfer plan chosen",
            extra={
                "extra_fields": {
                    "op": "plan",
                    "resource_id": ref.id,
                    "plan": name,
                    "max_bytes": self._gate.max_bytes,
                }
            },
        )
