"""Prometheus adapter for the :class:`MeterRegistry` protocol."""

from __future__ import annotations

import threading
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Summary, generate_latest


class PrometheusRegistry:
    """Adapter that forwards metrics to ``prometheus_client``.

    Counters map to Prometheus :class:`~prometheus_client.Counter` and
    timers to :class:`~prometheus_client.Summary` (observed in
    milliseconds).

    Metrics are created lazily on first use and cached for subsequent
    calls. Label names are derived from the tag keys of the first call
    for a given metric name.

    Args:
        registry: Collector registry to register metrics with. Defaults
            to the process-wide ``prometheus_client.REGISTRY``.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or REGISTRY
        self._lock = threading.Lock()
        self._counters: dict[str, Any] = {}
        self._summaries: dict[str, Any] = {}

    def counter(
        self,
        name: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        metric = self._get_or_create_counter(name, tags)
        if tags:
            metric.labels(**tags).inc(value)
        else:
            metric.inc(value)

    def timer(
        self,
        name: str,
        duration_ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        metric = self._get_or_create_summary(name, tags)
        if tags:
            metric.labels(**tags).observe(duration_ms)
        else:
            metric.observe(duration_ms)

    def get_metrics(self) -> dict[str, Any]:
        """Return registered metric names grouped by kind."""
        with self._lock:
            return {
                "counters": list(self._counters.keys()),
                "timers": list(self._summaries.keys()),
            }

    def render(self) -> str:
        """Return the registry contents in the Prometheus text exposition format."""
        return generate_latest(self._registry).decode("utf-8")

    # -- internal helpers ---------------------------------------------------

    def _get_or_create_counter(self, name: str, tags: dict[str, str] | None) -> Any:
        with self._lock:
            if name not in self._counters:
                label_names = sorted(tags.keys()) if tags else []
                self._counters[name] = Counter(
                    name, f"Counter {name}", label_names, registry=self._registry
                )
            return self._counters[name]

    def _get_or_create_summary(self, name: str, tags: dict[str, str] | None) -> Any:
        with self._lock:
            if name not in self._summaries:
                label_names = sorted(tags.keys()) if tags else []
                self._summaries[name] = Summary(
                    name, f"Timer {name}", label_names, registry=self._registry
                )
            return self._summaries[name]
