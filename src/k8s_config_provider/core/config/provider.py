"""Config provider configuration model."""

from dataclasses import dataclass, field
from typing import Any

from k8s_config_provider.core.config.base import KeyNotFoundPolicy
from k8s_config_provider.core.config.hooks import AuditConfig, LoggingConfig, MetricsConfig


@dataclass
class ProviderConfig:
    """Top-level configuration for a Kubernetes secret config provider.

    Loaded from HOCON or environment variables with the functions in
    :mod:`k8s_config_provider.core.config.loader`.
    """

    namespace: str
    """Namespace every resolution reads from (required)"""

    key_not_found: KeyNotFoundPolicy = KeyNotFoundPolicy.IGNORE
    """Policy when none of the requested keys exist (default: ignore)"""

    kubeconfig: str | None = None
    """Path to a kubeconfig file (optional)"""

    context: str | None = None
    """Kubeconfig context (optional)"""

    in_cluster: bool = False
    """Use the in-cluster service account (default: False)"""

    request_timeout_seconds: float | None = None
    """Per-request timeout for the Kubernetes API (optional)"""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    """Logging configuration"""

    metrics: MetricsConfig | None = None
    """Metrics configuration (optional)"""

    audit: AuditConfig | None = None
    """Audit configuration (optional)"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.namespace or not self.namespace.strip():
            raise ValueError("namespace is required")

        if self.in_cluster and (self.kubeconfig or self.context):
            raise ValueError("in_cluster cannot be combined with kubeconfig or context")

        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")

    def to_options(self) -> dict[str, Any]:
        """Return the option map accepted by ``SecretConfigProvider.configure``."""
        return {
            "namespace": self.namespace,
            "key_not_found": self.key_not_found.value,
        }
