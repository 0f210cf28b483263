"""Command-line entry point.

Reads the run configuration from the environment (``PIXEL_LINK``,
``TELEGRAM_BOT_TOKEN``, ``TELEGRAM_CHAT_ID``, ``MAX_UPLOAD_BYTES``), lets
flags override the non-secret values, relays the link and exits with:

* ``0`` -- the content was uploaded, or direct links were sent instead;
* ``1`` -- any fatal error.  A final error message is sent to the chat
  whenever the messaging credentials are available; a failure to send it is
  logged and never changes the exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Callable, Mapping

import httpx

from pixelrelay import __version__
from pixelrelay.api import AsyncHttpTransport, PixeldrainAPI, TelegramAPI
from pixelrelay.budget import BudgetGate
from pixelrelay.config import ENV_BOT_TOKEN, ENV_CHAT_ID, RelayConfig
from pixelrelay.errors import ConfigMissingError, RelayError
from pixelrelay.notifier import Notifier
from pixelrelay.observability import get_logger, set_level
from pixelrelay.pipeline import RelayPipeline
from pixelrelay.resolver import MetadataResolver
from pixelrelay.staging import StagingArea
from pixelrelay.transfer import HttpFetcher, TelegramUploader, ZipArchiver
from pixelrelay.utils.redact import redact, redact_text

log = get_logger("pixelrelay.cli")

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelrelay",
        description=(
            "Relay a Pixeldrain file or folder to a Telegram chat, or send "
            "direct links when it is too large."
        ),
    )
    parser.add_argument(
        "--link",
        help="Pixeldrain link, or text containing one (default: $PIXEL_LINK)",
    )
    parser.add_argument(
        "--chat-id",
        help="Destination chat or channel id (default: $TELEGRAM_CHAT_ID)",
    )
    parser.add_argument(
        "--max-bytes",
        type=int,
        help="Transfer budget in bytes (default: $MAX_UPLOAD_BYTES or 1900000000)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_pipeline(
    config: RelayConfig,
    transport: AsyncHttpTransport,
    notifier: Notifier,
    staging_factory: Callable[[], StagingArea] = StagingArea,
) -> RelayPipeline:
    """Wire the production capabilities around *transport*."""
    telegram = TelegramAPI(transport, config.bot_token, config.telegram_api_base)
    return RelayPipeline(
        resolver=MetadataResolver(PixeldrainAPI(transport, config.file_api_base)),
        gate=BudgetGate(config.max_bytes),
        fetcher=HttpFetcher(transport),
        archiver=ZipArchiver(),
        uploader=TelegramUploader(telegram, config.chat_id, metrics=config.metrics),
        notifier=notifier,
        staging_factory=staging_factory,
        metrics=config.metrics,
    )


def build_notifier(config: RelayConfig, transport: AsyncHttpTransport) -> Notifier:
    return Notifier(
        TelegramAPI(transport, config.bot_token, config.telegram_api_base),
        config.chat_id,
        message_limit=config.message_limit,
        batch_limit=config.batch_limit,
        preview_count=config.preview_count,
        token=config.bot_token,
    )


async def _report_failure(notifier: Notifier, error: BaseException, token: str) -> None:
    try:
        await notifier.report_failure(error)
    except RelayError as notify_exc:
        log.warning(
            "Could not deliver the final error message",
            extra={"extra_fields": {"op": "notify", "error": redact_text(str(notify_exc), token)}},
        )


async def run(
    config: RelayConfig,
    *,
    client: httpx.AsyncClient | None = None,
    staging_factory: Callable[[], StagingArea] = StagingArea,
) -> int:
    """Relay ``config.link`` and return the process exit code."""
    async with AsyncHttpTransport(config, client=client) as transport:
        notifier = build_notifier(config, transport)
        pipeline = build_pipeline(config, transport, notifier, staging_factory)
        try:
            report = await pipeline.run(config.link)
        except RelayError as exc:
            log.error(
                "Relay failed",
                extra={
                    "extra_fields": {
                        "op": "run",
                        "code": getattr(exc.code, "value", exc.code),
                        "error": redact_text(exc.message, config.bot_token),
                        "context": redact(exc.context, config.bot_token),
                    }
                },
            )
            await _report_failure(notifier, exc, config.bot_token)
            return EXIT_FAILURE
        except Exception as exc:
            log.error(
                "Relay crashed",
                extra={
                    "extra_fields": {
                        "op": "run",
                        "error": redact_text(f"{type(exc).__name__}: {exc}", config.bot_token),
                    }
                },
            )
            await _report_failure(notifier, exc, config.bot_token)
            return EXIT_FAILURE

    log.info(
        "Done",
        extra={
            "extra_fields": {
                "op": "run",
                "outcome": report.outcome.value,
                "uploaded_bytes": report.uploaded_bytes,
                "reason": report.reason,
                "links": report.link_count,
                "messages_sent": notifier.sent_count,
            }
        },
    )
    return EXIT_OK


async def notify_startup_failure(
    environ: Mapping[str, str],
    error: ConfigMissingError,
    chat_id: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Report a configuration error when the chat credentials exist.

    Does nothing when the bot token or chat id is itself missing.
    """
    token = environ.get(ENV_BOT_TOKEN, "").strip()
    chat = (chat_id or environ.get(ENV_CHAT_ID, "")).strip()
    if not token or not chat:
        return
    config = RelayConfig(bot_token=token, chat_id=chat)
    async with AsyncHttpTransport(config, client=client) as transport:
        await _report_failure(build_notifier(config, transport), error, token)


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_level(args.log_level)
    env = os.environ if environ is None else environ

    try:
        config = RelayConfig.from_env(
            env,
            link=args.link,
            chat_id=args.chat_id,
            max_bytes=args.max_bytes,
        )
    except ConfigMissingError as exc:
        log.error(
            "Invalid configuration",
            extra={"extra_fields": {"op": "config", "error": exc.message, **exc.context}},
        )
        asyncio.run(notify_startup_failure(env, exc, chat_id=args.chat_id))
        return EXIT_FAILURE
    except ValueError as exc:
        log.error(
            "Invalid configuration",
            extra={"extra_fields": {"op": "config", "error": str(exc)}},
        )
        return EXIT_FAILURE

    log.debug("Configuration loaded", extra={"extra_fields": {"config": repr(config)}})
    return asyncio.run(run(config))


if __name__ == "__main__":
    sys.exit(main())
