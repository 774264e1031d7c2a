"""Metrics collection and export abstractions."""

from k8s_config_provider.core.metrics.exporters import PrometheusRegistry
from k8s_config_provider.core.metrics.registry import InMemoryRegistry, MeterRegistry

__all__ = [
    "InMemoryRegistry",
    "MeterRegistry",
    "PrometheusRegistry",
]
