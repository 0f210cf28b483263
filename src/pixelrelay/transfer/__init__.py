"""Transfer capabilities used by the pipeline.

Each capability is a :class:`typing.Protocol` with one production
implementation; tests substitute in-memory fakes.
"""

from .archiver import Archiver, ZipArchiver
from .fetcher import Fetcher, HttpFetcher
from .uploader import TelegramUploader, Uploader

__all__ = [
    "Archiver",
    "Fetcher",
    "HttpFetcher",
    "TelegramUploader",
    "Uploader",
    "ZipArchiver",
]
