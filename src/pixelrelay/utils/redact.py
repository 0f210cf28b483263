"""Credential redaction for safe logging and chat messages.

The Telegram Bot API embeds the bot token in the request path
(``/bot<token>/sendMessage``), so transport errors, URLs and response dumps
may contain it.  Everything that ends up in a log line or in a message sent
to the chat passes through :func:`redact_text` or :func:`redact` first.

* An explicit token is replaced wherever it appears by a placeholder showing
  only its last four characters.
* Any ``/bot<token>/`` path segment is masked even when the token is not
  known to the caller.
* Values under sensitive keys (``token``, ``secret``, ``authorization`` ...)
  are masked in dictionaries.
"""

from __future__ import annotations

import copy
import re
from typing import Any

# Bot API tokens look like "<digits>:<35ish url-safe chars>".
_BOT_PATH_RE = re.compile(r"/bot[0-9]+:[A-Za-z0-9_-]+")

_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
})


def _placeholder(token: str) -> str:
    suffix = token[-4:] if len(token) >= 8 else "****"
    return f"<redacted:...{suffix}>"


def redact_text(value: str, token: str | None = None) -> str:
    """Return *value* with *token* and any bot-path credential masked."""
    if token and token in value:
        value = value.replace(token, _placeholder(token))
    return _BOT_PATH_RE.sub("/bot<redacted>", value)


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, list):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, str):
        return redact_text(value, token)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = "<redacted>"
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a deep copy of *payload* with credentials removed.

    The original *payload* is never mutated.

    Examples
    --------
    >>> redact({"bot_token": "123:abc", "chat_id": "42"})
    {'bot_token': '<redacted>', 'chat_id': '42'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, token)
