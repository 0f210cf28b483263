"""Error hierarchy for pixelrelay.

Every error raised by the relay inherits from :class:`RelayError`. Each
carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and an
optional ``cause`` (chained exception).

Plan-level failures that still allow the user to fetch the content by hand
(:class:`DownloadFailedError`, :class:`ArchiveFailedError`,
:class:`UploadFailedError`) also carry a
``fallback`` tuple of :class:`~pixelrelay.models.FileMeta` whose direct links
are included in the final error message.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pixelrelay.models import FileMeta

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the relay can raise."""

    CONFIG_MISSING = "CONFIG_MISSING"
    UNRECOGNIZED_LINK = "UNRECOGNIZED_LINK"
    FOLDER_FETCH_FAILED = "FOLDER_FETCH_FAILED"
    EMPTY_FOLDER = "EMPTY_FOLDER"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    ARCHIVE_FAILED = "ARCHIVE_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    NOTIFY_FAILED = "NOTIFY_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class RelayError(Exception):
    """Base exception for all pixelrelay errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` identifying the error category.
    message:
        A description of what went wrong.  This text is shown to the chat
        (escaped), so it must never contain credentials.
    context:
        Structured diagnostic detail.  Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class ConfigMissingError(RelayError):
    """A required configuration value is absent or unusable.

    No notification is possible for this error when the messaging
    credentials are the missing piece.

    Context keys: ``variable``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIG_MISSING,
            message=message,
            context=context,
            cause=cause,
        )


class UnrecognizedLinkError(RelayError):
    """The input matched neither the file nor the folder link pattern.

    Context keys: ``link``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNRECOGNIZED_LINK,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class RelayNetworkError(RelayError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``method``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class RelayHTTPError(RelayError):
    """A remote endpoint answered with a non-success status.

    Context keys: ``url``, ``method``, ``status_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.HTTP_ERROR,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")


# ---------------------------------------------------------------------------
# Resolution errors
# ---------------------------------------------------------------------------

class FolderFetchFailedError(RelayError):
    """The folder listing could not be fetched or was malformed.

    Context keys: ``folder_id``, ``status_code``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.FOLDER_FETCH_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


class EmptyFolderError(RelayError):
    """The folder listing contains no files.

    Context keys: ``folder_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.EMPTY_FOLDER,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Transfer errors
# ---------------------------------------------------------------------------

class TransferError(RelayError):
    """Base class for failures that abort the chosen transfer plan.

    Parameters
    ----------
    fallback:
        Members whose direct links should be offered instead.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        fallback: tuple[FileMeta, ...] = (),
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )
        self.fallback: tuple[FileMeta, ...] = tuple(fallback)


class DownloadFailedError(TransferError):
    """A remote file could not be staged locally.

    Context keys: ``name``, ``url``, ``dest``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        fallback: tuple[FileMeta, ...] = (),
    ) -> None:
        super().__init__(
            code=ErrorCode.DOWNLOAD_FAILED,
            message=message,
            context=context,
            cause=cause,
            fallback=fallback,
        )


class ArchiveFailedError(TransferError):
    """Bundling the staged files into one archive failed.

    Context keys: ``dest``, ``file_count``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        fallback: tuple[FileMeta, ...] = (),
    ) -> None:
        super().__init__(
            code=ErrorCode.ARCHIVE_FAILED,
            message=message,
            context=context,
            cause=cause,
            fallback=fallback,
        )


class UploadFailedError(TransferError):
    """The messaging endpoint rejected or never received the document.

    Context keys: ``path``, ``status_code``, ``description``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        fallback: tuple[FileMeta, ...] = (),
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_FAILED,
            message=message,
            context=context,
            cause=cause,
            fallback=fallback,
        )


class NotifyFailedError(RelayError):
    """A status message could not be delivered to the chat.

    Context keys: ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOTIFY_FAILED,
            message=message,
            context=context,
            cause=cause,
        )
