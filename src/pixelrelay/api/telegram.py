"""Telegram Bot API wrapper.

Two methods are used:

* ``sendMessage`` -- JSON body with ``chat_id``, ``text``, ``parse_mode``
  and ``disable_web_page_preview``.
* ``sendDocument`` -- multipart form with ``chat_id``, ``document`` and an
  optional ``caption``.

Both answer with ``{"ok": bool, "result" | "description": ...}``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .transport import AsyncHttpTransport

PARSE_MODE = "MarkdownV2"


class TelegramAPI:
    """Asynchronous wrapper for the Telegram Bot API.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncHttpTransport`.
    token:
        Bot token.  It is part of every method URL and is redacted by the
        transport wherever a URL is logged.
    base_url:
        API root, e.g. ``"https://api.telegram.org"``.
    """

    def __init__(
        self,
        transport: AsyncHttpTransport,
        token: str,
        base_url: str = "https://api.telegram.org",
    ) -> None:
        self._transport = transport
        self._token = token
        self._base_url = base_url.rstrip("/")

    def method_url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._token}/{method}"

    async def send_message(
        self,
        chat_id: str,
        text: str,
        parse_mode: str | None = PARSE_MODE,
    ) -> dict[str, Any]:
        """Send a text message and return the decoded reply.

        Non-``2xx`` answers are returned (Telegram reports the reason in the
        body) so the caller can log ``description``.
        """
        body: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if parse_mode:
            body["parse_mode"] = parse_mode
        response = await self._transport.request(
            "POST", self.method_url("sendMessage"), json=body, allow_error=True,
        )
        return _decode(response)

    async def send_document(
        self,
        chat_id: str,
        path: Path,
        caption: str | None = None,
    ) -> dict[str, Any]:
        """Upload *path* as a document and return the decoded reply."""
        data: dict[str, str] = {"chat_id": chat_id}
        if caption:
            data["caption"] = caption
        with open(path, "rb") as fh:
            response = await self._transport.request(
                "POST",
                self.method_url("sendDocument"),
                data=data,
                files={"document": (path.name, fh, "application/octet-stream")},
                allow_error=True,
            )
        return _decode(response)


def _decode(response: Any) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        return {
            "ok": False,
            "error_code": response.status_code,
            "description": f"unexpected response body (HTTP {response.status_code})",
        }
    payload.setdefault("ok", response.is_success)
    return payload
