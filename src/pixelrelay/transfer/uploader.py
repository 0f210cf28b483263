"""Relay uploader: push a staged file to the chat as a document."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pixelrelay.api.telegram import TelegramAPI
from pixelrelay.errors import RelayHTTPError, RelayNetworkError, UploadFailedError
from pixelrelay.observability import MetricsHook, NoopMetricsHook, get_logger

log = get_logger("pixelrelay.uploader")

CAPTION_LIMIT = 1024


@runtime_checkable
class Uploader(Protocol):
    """Capability: deliver one local file as a binary attachment."""

    async def upload(self, path: Path, caption: str | None = None) -> dict[str, Any]:
        """Upload *path* once and return the endpoint's result.

        Raises
        ------
        UploadFailedError
            On a transport failure or a rejected upload.
        """
        ...


class TelegramUploader:
    """Upload through ``sendDocument`` to a fixed chat.

    Captions are sent as plain text, cut to Telegram's caption limit.
    """

    def __init__(
        self,
        api: TelegramAPI,
        chat_id: str,
        metrics: MetricsHook | None = None,
    ) -> None:
        self._api = api
        self._chat_id = chat_id
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def upload(self, path: Path, caption: str | None = None) -> dict[str, Any]:
        if caption and len(caption) > CAPTION_LIMIT:
            caption = caption[: CAPTION_LIMIT - 1] + "…"
        try:
            reply = await self._api.send_document(self._chat_id, path, caption=caption)
        except (RelayNetworkError, RelayHTTPError) as exc:
            self._metrics.increment("pixelrelay.upload_failure_total")
            raise UploadFailedError(
                f"Upload of {path.name} failed: {exc.message}",
                context={"path": str(path)},
                cause=exc,
            ) from exc
        except OSError as exc:
            self._metrics.increment("pixelrelay.upload_failure_total")
            raise UploadFailedError(
                f"Upload of {path.name} failed: {exc}",
                context={"path": str(path)},
                cause=exc,
            ) from exc

        if not reply.get("ok"):
            self._metrics.increment("pixelrelay.upload_failure_total")
            description = str(reply.get("description") or "rejected by the server")
            raise UploadFailedError(
                f"Upload of {path.name} failed: {description}",
                context={
                    "path": str(path),
                    "status_code": reply.get("error_code"),
                    "description": description,
                },
            )

        self._metrics.increment("pixelrelay.upload_success_total")
        log.info(
            "Upload complete",
            extra={"extra_fields": {"op": "upload", "path": str(path)}},
        )
        return reply.get("result") or {}
