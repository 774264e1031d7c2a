"""Secret resolution: stores, provider, and audit trail."""

from k8s_config_provider.core.secrets.base import (
    ConfigData,
    RawSecret,
    SecretReference,
    SecretStore,
)
from k8s_config_provider.core.secrets.exceptions import (
    ConfigProviderError,
    InvalidArgumentError,
    KeyNotFoundError,
    ResolutionFailureError,
    SecretNotFoundError,
    SecretStoreError,
)
from k8s_config_provider.core.secrets.providers import (
    InMemorySecretStore,
    KubernetesSecretStore,
)
from k8s_config_provider.core.secrets.resolver import SecretConfigProvider, merge_secret_values
from k8s_config_provider.core.secrets.audit import SecretsAuditLogger

__all__ = [
    "ConfigData",
    "ConfigProviderError",
    "InMemorySecretStore",
    "InvalidArgumentError",
    "KeyNotFoundError",
    "KubernetesSecretStore",
    "RawSecret",
    "ResolutionFailureError",
    "SecretConfigProvider",
    "SecretNotFoundError",
    "SecretReference",
    "SecretStore",
    "SecretStoreError",
    "SecretsAuditLogger",
    "merge_secret_values",
]
