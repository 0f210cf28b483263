"""Thin async wrappers for the remote APIs the relay talks to."""

from .pixeldrain import PixeldrainAPI
from .telegram import PARSE_MODE, TelegramAPI
from .transport import AsyncHttpTransport

__all__ = [
    "AsyncHttpTransport",
    "PARSE_MODE",
    "PixeldrainAPI",
    "TelegramAPI",
]
