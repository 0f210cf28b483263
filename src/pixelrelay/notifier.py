"""Status messages sent to the destination chat.

Messages use Telegram MarkdownV2.  Every piece of text that comes from the
user or the remote host (file names, URLs, error messages) is passed through
:func:`escape_markdown_v2` before it is embedded, so it always appears
literally and can never change the structure of a message.

Link lists are packed with :func:`~pixelrelay.utils.text_split.pack_lines`
so that each message stays under the configured limit and no item is split
across two messages.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from pixelrelay.api.telegram import TelegramAPI
from pixelrelay.errors import (
    NotifyFailedError,
    RelayError,
    RelayHTTPError,
    RelayNetworkError,
    TransferError,
)
from pixelrelay.models import FileMeta, FolderListing
from pixelrelay.observability import get_logger
from pixelrelay.utils.redact import redact_text
from pixelrelay.utils.text_split import pack_lines, split_escaped

log = get_logger("pixelrelay.notifier")

_MDV2_SPECIAL_RE = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")
_MDV2_ENTITY_RE = re.compile(r"(\\.)|[*_~`|]", re.DOTALL)

LINK_SEPARATOR = "\n\n"


def escape_markdown_v2(text: object) -> str:
    r"""Escape every MarkdownV2 special character in *text*.

    Examples
    --------
    >>> escape_markdown_v2("a_b.txt")
    'a\\_b\\.txt'
    """
    return _MDV2_SPECIAL_RE.sub(r"\\\1", str(text))


def strip_entities(text: str) -> str:
    r"""Drop the unescaped entity markers (``*``, backtick, ``_`` ...) of *text*.

    Escape sequences are kept, so the result is still valid MarkdownV2 and
    can be cut anywhere :func:`~pixelrelay.utils.text_split.split_escaped`
    allows.

    Examples
    --------
    >>> strip_entities("*a\\_b* `c\\.d`")
    'a\\_b c\\.d'
    """
    return _MDV2_ENTITY_RE.sub(lambda m: m.group(1) or "", text)


def code(text: object) -> str:
    """Render *text* as an escaped inline code span."""
    return f"`{escape_markdown_v2(text)}`"


def bold(text: object) -> str:
    return f"*{escape_markdown_v2(text)}*"


def describe_size(size_bytes: int | None) -> str:
    return "unknown" if size_bytes is None else str(size_bytes)


def link_line(meta: FileMeta) -> str:
    """One list item: name, reported size and direct URL."""
    return (
        f"\\- {escape_markdown_v2(meta.name)} "
        f"\\({escape_markdown_v2(describe_size(meta.size_bytes))} bytes\\)\n"
        f"{code(meta.source_url)}"
    )


class Notifier:
    """Send formatted status messages to one chat.

    Parameters
    ----------
    api:
        A :class:`TelegramAPI` instance.
    chat_id:
        Destination chat or channel identifier.
    message_limit:
        Hard per-message character limit.
    batch_limit:
        Character budget used when packing link lists (at most
        *message_limit*).
    preview_count:
        Number of links in the summary of an oversized folder.
    token:
        Bot token, scrubbed from any error text before it is sent.
    """

    def __init__(
        self,
        api: TelegramAPI,
        chat_id: str,
        *,
        message_limit: int = 4096,
        batch_limit: int = 3000,
        preview_count: int = 20,
        token: str | None = None,
    ) -> None:
        self._api = api
        self._chat_id = chat_id
        self._message_limit = message_limit
        self._batch_limit = min(batch_limit, message_limit)
        self._preview_count = preview_count
        self._token = token
        self.sent_count = 0

    # -- primitives --------------------------------------------------------

    async def send(self, text: str) -> None:
        """Send one pre-formatted MarkdownV2 message.

        Text longer than the message limit loses its bold and code markup
        and is then cut on escape-safe boundaries, so every part parses.
        A reply with ``ok: false`` is logged; a transport failure raises.

        Raises
        ------
        NotifyFailedError
            If the message could not be delivered.
        """
        if len(text) > self._message_limit:
            text = strip_entities(text)
        for part in split_escaped(text, self._message_limit):
            await self._send_one(part)

    async def _send_one(self, text: str) -> None:
        try:
            reply = await self._api.send_message(self._chat_id, text)
        except (RelayNetworkError, RelayHTTPError) as exc:
            raise NotifyFailedError(
                f"Could not send status message: {exc.message}",
                cause=exc,
            ) from exc
        self.sent_count += 1
        if not reply.get("ok"):
            log.error(
                "Telegram sendMessage failed",
                extra={
                    "extra_fields": {
                        "op": "notify",
                        "error_code": reply.get("error_code"),
                        "description": reply.get("description"),
                    }
                },
            )

    async def send_lines(self, lines: Sequence[str]) -> None:
        """Send *lines* packed into as few messages as the limit allows.

        An item too long for one message is sent without markup, cut into
        several messages.
        """
        items = [
            strip_entities(line) if len(line) > self._batch_limit else line
            for line in lines
        ]
        for message in pack_lines(items, self._batch_limit, LINK_SEPARATOR):
            await self.send(message)

    # -- milestones --------------------------------------------------------

    async def run_started(self) -> None:
        await self.send("🚀 Received Pixeldrain link, starting process\\.\\.\\.")

    async def download_started(self, meta: FileMeta) -> None:
        await self.send(f"⬇️ Downloading {bold(meta.name)}\\.\\.\\.")

    async def folder_download_started(self, listing: FolderListing) -> None:
        text = f"⬇️ Downloading {len(listing)} file\\(s\\) and preparing zip\\.\\.\\."
        if listing.unknown_size_count:
            text += (
                f"\n{listing.unknown_size_count} file size\\(s\\) were not reported; "
                "the archive size is checked before upload\\."
            )
        await self.send(text)

    async def upload_started(self, meta: FileMeta) -> None:
        await self.send(
            f"⬆️ Uploading {bold(meta.name)} to Telegram \\(this may take a while\\)\\.\\.\\."
        )

    async def archive_upload_started(self, archive_bytes: int) -> None:
        await self.send(f"⬆️ Uploading zip \\({archive_bytes} bytes\\) to Telegram\\.\\.\\.")

    async def upload_succeeded(self, meta: FileMeta) -> None:
        await self.send(f"✅ Uploaded {bold(meta.name)} successfully\\.")

    async def archive_upload_succeeded(self) -> None:
        await self.send("✅ Folder uploaded as zip\\.")

    # -- fallbacks ---------------------------------------------------------

    async def file_too_large(self, meta: FileMeta, max_bytes: int) -> None:
        await self.send(
            f"❗ File {bold(meta.name)} is too large to auto\\-upload "
            f"\\({meta.size_bytes} bytes, limit {max_bytes}\\)\\. "
            f"Here is the direct download URL:\n{code(meta.source_url)}\n\n"
            "Use wget on your machine to download it\\."
        )

    async def download_too_large(self, meta: FileMeta, actual_bytes: int) -> None:
        await self.send(
            f"❗ After download {bold(meta.name)} is {actual_bytes} bytes, which exceeds "
            f"the max allowed size\\. Not uploading\\. Direct URL:\n{code(meta.source_url)}"
        )

    async def folder_too_large(self, listing: FolderListing, max_bytes: int) -> None:
        lines = [link_line(f) for f in listing.files]
        preview = lines[: self._preview_count]
        header = (
            f"❗ Folder contains {len(listing)} files, total size "
            f"{listing.total_size_bytes} bytes which is larger than the allowed upload "
            f"limit \\({max_bytes} bytes\\)\\. Sending direct links instead"
        )
        if preview and len(preview) < len(lines):
            summary = [f"{header}:", *preview, f"\\(Only first {len(preview)} shown\\)"]
        elif preview:
            summary = [f"{header}:", *preview]
        else:
            summary = [f"{header}\\."]
        await self.send_lines(summary)
        await self.send_lines(lines)

    async def archive_too_large(self, listing: FolderListing, archive_bytes: int) -> None:
        await self.send(
            f"❗ Zip archive size {archive_bytes} bytes exceeds the allowed upload size\\. "
            "Sending direct links instead\\."
        )
        await self.send_lines(
            [f"{escape_markdown_v2(f.name)} — {code(f.source_url)}" for f in listing.files]
        )

    # -- failures ----------------------------------------------------------

    def format_error(self, error: BaseException) -> str:
        """Render *error* as an escaped, credential-free message."""
        raw = error.message if isinstance(error, RelayError) else (str(error) or type(error).__name__)
        return f"❌ Error in upload script: {escape_markdown_v2(redact_text(raw, self._token))}"

    async def report_failure(self, error: BaseException) -> None:
        """Send the single final error message for a fatal *error*.

        Transfer errors that carry fallback members get their direct links
        appended (packed into further messages when long).
        """
        text = self.format_error(error)
        fallback = error.fallback if isinstance(error, TransferError) else ()
        if not fallback:
            await self.send(text)
            return
        await self.send_lines(
            [f"{text}\nYou can still download directly:", *(link_line(f) for f in fallback)]
        )
