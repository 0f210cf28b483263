"""Metrics hook protocol and no-op default implementation.

pixelrelay emits counters and timings at key points of a run.  By default a
:class:`NoopMetricsHook` is used; pass any object satisfying
:class:`MetricsHook` as ``RelayConfig.metrics`` to route them to StatsD,
Prometheus push gateways, or similar.

Emitted metric names:

* ``pixelrelay.requests_total``           -- counter
* ``pixelrelay.request_duration_ms``      -- timing
* ``pixelrelay.bytes_downloaded_total``   -- counter
* ``pixelrelay.upload_success_total``     -- counter
* ``pixelrelay.upload_failure_total``     -- counter
* ``pixelrelay.fallback_total``           -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
