"""Run configuration for pixelrelay.

:class:`RelayConfig` is a frozen dataclass that captures every tuneable knob
of a relay run.  It is built once at startup (usually through
:meth:`RelayConfig.from_env`) and passed explicitly into the pipeline; nothing
reads the process environment after that point.

Environment variables read by :meth:`RelayConfig.from_env`:

* ``PIXEL_LINK`` -- the link (or text containing it) to relay.  **Required.**
* ``TELEGRAM_BOT_TOKEN`` -- bot credential.  **Required.**  Never logged.
* ``TELEGRAM_CHAT_ID`` -- destination chat or channel.  **Required.**
* ``MAX_UPLOAD_BYTES`` -- transfer budget override.  Optional.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pixelrelay.errors import ConfigMissingError

DEFAULT_MAX_BYTES = 1_900_000_000
"""Transfer budget used when ``MAX_UPLOAD_BYTES`` is not set (about 1.9 GB)."""

ENV_LINK = "PIXEL_LINK"
ENV_BOT_TOKEN = "TELEGRAM_BOT_TOKEN"
ENV_CHAT_ID = "TELEGRAM_CHAT_ID"
ENV_MAX_BYTES = "MAX_UPLOAD_BYTES"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RelayConfig:
    """Complete configuration for one relay run.

    Parameters
    ----------
    link:
        The Pixeldrain link, or free text containing one.
    bot_token:
        Telegram bot token.  Never logged; masked in ``repr``.
    chat_id:
        Destination chat, group or channel identifier.
    max_bytes:
        Transfer budget.  Content larger than this is offered as links.
    file_api_base:
        Pixeldrain API root.  Override for proxies or testing.
    telegram_api_base:
        Bot API root.  Point this at a local Bot API server to lift the
        public 50 MB document limit.
    message_limit:
        Hard character limit of a single chat message.
    link_batch_chars:
        Character budget used when packing link lists into messages.
        Clamped to ``message_limit``.
    preview_count:
        Number of links shown in the summary message of an oversized folder.
    timeout_seconds:
        HTTP timeout.  ``None`` disables it, which suits very large transfers.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    download_chunk_bytes:
        Read size used when streaming downloads to disk.
    metrics:
        Optional :class:`~pixelrelay.observability.MetricsHook` backend.
    """

    # ── Core ────────────────────────────────────────────────────────────
    link: str = ""

    bot_token: str = ""

    chat_id: str = ""

    max_bytes: int = DEFAULT_MAX_BYTES

    # ── Endpoints ───────────────────────────────────────────────────────
    file_api_base: str = "https://pixeldrain.com/api"

    telegram_api_base: str = "https://api.telegram.org"

    # ── Messages ────────────────────────────────────────────────────────
    message_limit: int = 4096

    link_batch_chars: int = 3000

    preview_count: int = 20

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float | None = 60.0

    http_proxy: str | None = None

    download_chunk_bytes: int = 1024 * 1024

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be > 0, got {self.max_bytes}")
        if self.message_limit < 2:
            raise ValueError(f"message_limit must be >= 2, got {self.message_limit}")
        if self.link_batch_chars < 2:
            raise ValueError(f"link_batch_chars must be >= 2, got {self.link_batch_chars}")
        if self.preview_count < 0:
            raise ValueError(f"preview_count must be >= 0, got {self.preview_count}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.download_chunk_bytes < 1:
            raise ValueError(
                f"download_chunk_bytes must be >= 1, got {self.download_chunk_bytes}"
            )

    @property
    def batch_limit(self) -> int:
        """Effective packing budget for link-list messages."""
        return min(self.link_batch_chars, self.message_limit)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        **overrides: Any,
    ) -> RelayConfig:
        """Build a configuration from *environ*, applying *overrides* on top.

        Overrides whose value is ``None`` are ignored so that unset CLI flags
        fall through to the environment.

        Raises
        ------
        ConfigMissingError
            When a required variable is missing or empty, or when
            ``MAX_UPLOAD_BYTES`` is not a positive integer.
        """
        values: dict[str, Any] = {
            "link": environ.get(ENV_LINK, ""),
            "bot_token": environ.get(ENV_BOT_TOKEN, ""),
            "chat_id": environ.get(ENV_CHAT_ID, ""),
        }
        raw_max = environ.get(ENV_MAX_BYTES, "").strip()
        if raw_max:
            values["max_bytes"] = _parse_max_bytes(raw_max)
        values.update({k: v for k, v in overrides.items() if v is not None})

        for field_name, variable in (
            ("link", ENV_LINK),
            ("bot_token", ENV_BOT_TOKEN),
            ("chat_id", ENV_CHAT_ID),
        ):
            if not str(values.get(field_name, "")).strip():
                raise ConfigMissingError(
                    f"{variable} environment variable missing",
                    context={"variable": variable},
                )

        if "max_bytes" in values and values["max_bytes"] <= 0:
            raise ConfigMissingError(
                f"{ENV_MAX_BYTES} must be a positive integer, got {values['max_bytes']}",
                context={"variable": ENV_MAX_BYTES},
            )
        return cls(**values)

    def __repr__(self) -> str:
        """Mask the bot token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "bot_token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"bot_token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"RelayConfig({', '.join(parts)})"


def _parse_max_bytes(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigMissingError(
            f"{ENV_MAX_BYTES} must be a positive integer, got {raw!r}",
            context={"variable": ENV_MAX_BYTES},
            cause=exc,
        ) from exc
    if value <= 0:
        raise ConfigMissingError(
            f"{ENV_MAX_BYTES} must be a positive integer, got {raw!r}",
            context={"variable": ENV_MAX_BYTES},
        )
    return value
