"""Async HTTP transport shared by the Pixeldrain and Telegram wrappers.

Each request goes through the same lifecycle:

1. Send the request with the configured timeout and proxy.
2. On a transport failure -- raise :class:`RelayNetworkError` (no retries).
3. On a non-``2xx`` answer -- raise :class:`RelayHTTPError`, unless the
   caller passed ``allow_error=True`` and wants to inspect the response.
4. Otherwise return the :class:`httpx.Response`.

The bot token travels in Telegram URLs, so every URL that reaches a log line
or an error message is passed through :func:`redact_text`.
"""

from __future__ import annotations

import time
from typing import IO, Any

import httpx

from pixelrelay.config import RelayConfig
from pixelrelay.errors import RelayHTTPError, RelayNetworkError
from pixelrelay.observability import NoopMetricsHook, get_logger
from pixelrelay.utils.redact import redact_text

log = get_logger("pixelrelay.transport")

USER_AGENT = "pixelrelay/0.3"


def _host_tag(url: str) -> str:
    try:
        return httpx.URL(url).host or "unknown"
    except (httpx.InvalidURL, TypeError):
        return "unknown"


class AsyncHttpTransport:
    """Asynchronous HTTP transport with timing, metrics and typed errors.

    Parameters
    ----------
    config:
        A :class:`RelayConfig` controlling timeout, proxy and metrics.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one backed by
        ``httpx.MockTransport``).  The transport closes it on :meth:`close`.
    """

    def __init__(
        self,
        config: RelayConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        if client is None:
            client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                timeout=httpx.Timeout(config.timeout_seconds),
                proxy=config.http_proxy,
                follow_redirects=True,
            )
        self._client = client

    def _safe(self, text: str) -> str:
        return redact_text(text, self._config.bot_token)

    # -- public API --------------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        *,
        allow_error: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute one HTTP request.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``HEAD``, ``POST``).
        url:
            Absolute URL.
        allow_error:
            Return non-``2xx`` responses instead of raising.
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request` (``json=``,
            ``data=``, ``files=``, ``headers=``).

        Raises
        ------
        RelayNetworkError
            On timeouts, connection failures and other transport errors.
        RelayHTTPError
            On non-``2xx`` responses when *allow_error* is false.
        """
        host = _host_tag(url)
        t0 = time.monotonic()
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self._metrics.increment(
                "pixelrelay.requests_total",
                tags={"method": method, "host": host, "status": "error"},
            )
            detail = self._safe(str(exc)) or type(exc).__name__
            log.warning(
                "Request transport error",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": method,
                        "url": self._safe(url),
                        "error": detail,
                    }
                },
            )
            raise RelayNetworkError(
                message=f"Network error on {method} {self._safe(url)}: {detail}",
                context={"url": self._safe(url), "method": method},
                cause=exc,
            ) from exc

        elapsed_ms = (time.monotonic() - t0) * 1000
        status = str(response.status_code)
        self._metrics.increment(
            "pixelrelay.requests_total",
            tags={"method": method, "host": host, "status": status},
        )
        self._metrics.timing(
            "pixelrelay.request_duration_ms",
            elapsed_ms,
            tags={"method": method, "host": host, "status": status},
        )
        log.debug(
            "Request complete",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "url": self._safe(url),
                    "status_code": response.status_code,
                    "elapsed_ms": round(elapsed_ms, 1),
                }
            },
        )

        if not allow_error and not response.is_success:
            self._raise_for_status(response, method, url)
        return response

    async def stream_to(
        self,
        url: str,
        fh: IO[bytes],
        chunk_size: int | None = None,
    ) -> int:
        """Stream the body of ``GET url`` into the open binary file *fh*.

        Returns the number of bytes written.

        Raises
        ------
        RelayNetworkError
            If the connection fails before or during the transfer.
        RelayHTTPError
            If the server answers with a non-``2xx`` status.
        """
        chunk_size = chunk_size or self._config.download_chunk_bytes
        host = _host_tag(url)
        written = 0
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    await response.aread()
                    self._raise_for_status(response, "GET", url)
                async for chunk in response.aiter_bytes(chunk_size):
                    fh.write(chunk)
                    written += len(chunk)
        except httpx.HTTPError as exc:
            self._metrics.increment(
                "pixelrelay.requests_total",
                tags={"method": "GET", "host": host, "status": "error"},
            )
            detail = self._safe(str(exc)) or type(exc).__name__
            raise RelayNetworkError(
                message=f"Network error on GET {self._safe(url)}: {detail}",
                context={"url": self._safe(url), "method": "GET", "bytes": written},
                cause=exc,
            ) from exc

        self._metrics.increment(
            "pixelrelay.requests_total",
            tags={"method": "GET", "host": host, "status": str(response.status_code)},
        )
        self._metrics.increment(
            "pixelrelay.bytes_downloaded_total",
            value=written,
            tags={"host": host},
        )
        return written

    def _raise_for_status(self, response: httpx.Response, method: str, url: str) -> None:
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text[:500]
        description = ""
        if isinstance(body, dict):
            description = str(body.get("description") or body.get("message") or "")
        safe_url = self._safe(url)
        reason = f": {self._safe(description)}" if description else ""
        raise RelayHTTPError(
            message=f"HTTP {response.status_code} on {method} {safe_url}{reason}",
            context={
                "url": safe_url,
                "method": method,
                "status_code": response.status_code,
                "body": body,
            },
        )

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
