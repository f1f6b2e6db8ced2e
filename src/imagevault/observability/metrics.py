"""Metrics hook protocol and no-op default implementation.

The uploader emits counters and timings for every upload.  A
:class:`NoopMetricsHook` is used unless the caller passes an object that
satisfies :class:`MetricsHook`, so metrics can be routed to Prometheus,
StatsD, Datadog, or anything else without imagevault depending on them.

Emitted metric names:

* ``imagevault.upload_success_total``   -- counter
* ``imagevault.upload_rejected_total``  -- counter, tagged with ``code``
* ``imagevault.upload_failure_total``   -- counter, tagged with ``error``
* ``imagevault.process_duration_ms``    -- timing
* ``imagevault.store_duration_ms``      -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* are string-to-string mappings; implementations translate them
    into labels, tags or suffixes as their backend requires.
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

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Metrics implementation that discards every data point."""

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

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
