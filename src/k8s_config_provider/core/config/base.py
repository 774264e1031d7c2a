"""Base types and enums for configuration models."""

from enum import Enum


class KeyNotFoundPolicy(str, Enum):
    """What a keyed resolution does when none of the requested keys exist."""

    IGNORE = "ignore"
    FAIL = "fail"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class MetricsBackend(str, Enum):
    """Metrics collection backends."""

    IN_MEMORY = "in_memory"
    PROMETHEUS = "prometheus"
