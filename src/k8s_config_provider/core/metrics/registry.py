"""Meter registry protocol and default implementation.

Provides a pluggable abstraction for recording resolution counters and
store read timings. Implementations can export metrics to Prometheus or
any other backend.

The :class:`InMemoryRegistry` stores all metrics in memory and is
suitable for testing or lightweight use.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MeterRegistry(Protocol):
    """Protocol for recording provider metrics.

    All methods must be safe to call from multiple threads.
    """

    def counter(
        self,
        name: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric.

        Args:
            name: Metric name (e.g. ``"k8s_config_provider_resolutions_total"``).
            value: Amount to increment by.
            tags: Optional key-value tags for dimensionality.
        """
        ...

    def timer(
        self,
        name: str,
        duration_ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a timing measurement.

        Args:
            name: Metric name (e.g. ``"k8s_config_provider_read_duration_ms"``).
            duration_ms: Duration in milliseconds.
            tags: Optional key-value tags for dimensionality.
        """
        ...

    def get_metrics(self) -> dict[str, Any]:
        """Return a snapshot of all recorded metrics."""
        ...


def _tag_key(tags: dict[str, str] | None) -> str:
    """Create a hashable key from tags for metric bucketing."""
    if not tags:
        return ""
    return ",".join(f"{k}={v}" for k, v in sorted(tags.items()))


@dataclass
class _TimerEntry:
    tags: dict[str, str] = field(default_factory=dict)
    total_ms: float = 0.0
    count: int = 0


class InMemoryRegistry:
    """Thread-safe in-memory metrics registry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, dict[str, float]] = {}
        self._timers: dict[str, dict[str, _TimerEntry]] = {}

    def counter(
        self,
        name: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        key = _tag_key(tags)
        with self._lock:
            bucket = self._counters.setdefault(name, {})
            bucket[key] = bucket.get(key, 0.0) + value

    def timer(
        self,
        name: str,
        duration_ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        key = _tag_key(tags)
        with self._lock:
            bucket = self._timers.setdefault(name, {})
            entry = bucket.setdefault(key, _TimerEntry(tags=dict(tags or {})))
            entry.total_ms += duration_ms
            entry.count += 1

    def get_metrics(self) -> dict[str, Any]:
        """Return a snapshot with ``"counters"`` and ``"timers"`` keys."""
        with self._lock:
            return {
                "counters": {name: dict(buckets) for name, buckets in self._counters.items()},
                "timers": {
                    name: {
                        key: {"total_ms": entry.total_ms, "count": entry.count, "tags": dict(entry.tags)}
                        for key, entry in buckets.items()
                    }
                    for name, buckets in self._timers.items()
                },
            }

    def get_counter(self, name: str, tags: dict[str, str] | None = None) -> float:
        """Get current counter value, or ``0.0`` if never incremented."""
        key = _tag_key(tags)
        with self._lock:
            return self._counters.get(name, {}).get(key, 0.0)

    def get_timer_count(self, name: str, tags: dict[str, str] | None = None) -> int:
        """Get number of timer recordings, or ``0`` if none."""
        key = _tag_key(tags)
        with self._lock:
            entry = self._timers.get(name, {}).get(key)
            return entry.count if entry else 0

    def reset(self) -> None:
        """Clear all recorded metrics."""
        with self._lock:
            self._counters.clear()
            self._timers.clear()
