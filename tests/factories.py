"""Shared test factories for building stores and providers.

Import them directly::

    from tests.factories import make_provider, make_store
"""

from __future__ import annotations

from typing import Any

from k8s_config_provider.core.metrics.registry import MeterRegistry
from k8s_config_provider.core.secrets.providers import InMemorySecretStore
from k8s_config_provider.core.secrets.resolver import SecretConfigProvider

NAMESPACE = "my-ns"
SECRET_NAME = "my-secret"
SECRET_VALUES = {"testKey": "testResult", "testKey2": "testResult2"}


def make_store(
    secrets: dict[tuple[str, str], dict[str, str]] | None = None,
    binary: dict[tuple[str, str], dict[str, bytes]] | None = None,
) -> InMemorySecretStore:
    """Build an in-memory store.

    Defaults to the single ``my-ns/my-secret`` fixture holding
    :data:`SECRET_VALUES` as string values.
    """
    if secrets is None and binary is None:
        secrets = {(NAMESPACE, SECRET_NAME): dict(SECRET_VALUES)}
    store = InMemorySecretStore()
    for (namespace, name) in set(secrets or {}) | set(binary or {}):
        store.put(
            namespace,
            name,
            string_values=(secrets or {}).get((namespace, name)),
            binary_values=(binary or {}).get((namespace, name)),
        )
    return store


def make_provider(
    store: InMemorySecretStore | None = None,
    *,
    namespace: str = NAMESPACE,
    metrics: MeterRegistry | None = None,
    **options: Any,
) -> SecretConfigProvider:
    """Build a configured provider over *store* (default: :func:`make_store`)."""
    provider = SecretConfigProvider(store if store is not None else make_store(), metrics=metrics)
    provider.configure({"namespace": namespace, **options})
    return provider
