"""Configuration models for k8s-config-provider.

This package provides dataconf-based configuration models for the
provider, loaded from HOCON or environment variables, plus the
placeholder transformer that embeds resolved secrets in documents.
"""

from k8s_config_provider.core.config.base import KeyNotFoundPolicy, LogLevel, MetricsBackend
from k8s_config_provider.core.config.hooks import AuditConfig, LoggingConfig, MetricsConfig
from k8s_config_provider.core.config.loader import (
    load_from_env,
    load_from_file,
    load_from_string,
    load_with_overrides,
)
from k8s_config_provider.core.config.provider import ProviderConfig
from k8s_config_provider.core.config.transformer import (
    ConfigResolver,
    Placeholder,
    find_placeholders,
    transform_config,
)

__all__ = [
    "AuditConfig",
    "ConfigResolver",
    "KeyNotFoundPolicy",
    "LogLevel",
    "LoggingConfig",
    "MetricsBackend",
    "MetricsConfig",
    "Placeholder",
    "ProviderConfig",
    "find_placeholders",
    "load_from_env",
    "load_from_file",
    "load_from_string",
    "load_with_overrides",
    "transform_config",
]
