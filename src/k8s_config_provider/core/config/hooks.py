"""Observability configuration models."""

from dataclasses import dataclass

from k8s_config_provider.core.config.base import LogLevel, MetricsBackend


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: LogLevel = LogLevel.INFO
    """Logging level (default: INFO)"""

    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    """``logging`` format string"""


@dataclass
class MetricsConfig:
    """Configuration for resolution metrics."""

    enabled: bool = True
    """Record resolution metrics (default: True)"""

    backend: MetricsBackend = MetricsBackend.IN_MEMORY
    """Metrics backend to use (default: in_memory)"""


@dataclass
class AuditConfig:
    """Configuration for the secret access audit trail."""

    enabled: bool = True
    """Emit an audit event per resolution (default: True)"""

    audit_trail_path: str | None = None
    """JSON-lines file for audit events; ``None`` logs them instead"""

    actor: str = "k8s_config_provider"
    """Actor recorded in audit events"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.actor:
            raise ValueError("actor is required")
