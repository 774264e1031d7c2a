"""Built-in secret store implementations."""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from typing import Any

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.exceptions import ApiException

from k8s_config_provider.core.secrets.base import RawSecret, SecretStore
from k8s_config_provider.core.secrets.exceptions import (
    SecretNotFoundError,
    SecretStoreError,
)

logger = logging.getLogger(__name__)


class InMemorySecretStore(SecretStore):
    """Thread-safe dictionary-backed secret store.

    No external dependencies required. Useful for tests and for
    embedding hosts that already hold secret material.
    """

    def __init__(self) -> None:
        self._secrets: dict[tuple[str, str], RawSecret] = {}
        self._lock = threading.Lock()

    def put(
        self,
        namespace: str,
        secret_name: str,
        string_values: dict[str, str] | None = None,
        binary_values: dict[str, bytes] | None = None,
    ) -> None:
        """Create or replace a secret."""
        secret = RawSecret(
            binary_values=dict(binary_values or {}),
            string_values=dict(string_values or {}),
        )
        with self._lock:
            self._secrets[(namespace, secret_name)] = secret

    def delete(self, namespace: str, secret_name: str) -> None:
        """Remove a secret if present."""
        with self._lock:
            self._secrets.pop((namespace, secret_name), None)

    def read(self, namespace: str, secret_name: str) -> RawSecret:
        with self._lock:
            secret = self._secrets.get((namespace, secret_name))
        if secret is None:
            raise SecretNotFoundError(namespace, secret_name)
        return RawSecret(
            binary_values=dict(secret.binary_values),
            string_values=dict(secret.string_values),
        )


class KubernetesSecretStore(SecretStore):
    """Read secrets through the Kubernetes ``CoreV1Api``.

    The API client is created lazily on the first call to :meth:`read`.
    Without explicit settings, discovery follows the official client:
    the kubeconfig from ``KUBECONFIG`` or ``~/.kube/config``, falling
    back to the in-cluster service account.

    Args:
        kubeconfig: Path to a kubeconfig file.
        context: Kubeconfig context to use.
        in_cluster: Force in-cluster service account configuration.
        request_timeout_seconds: Per-request timeout passed to the client.
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        in_cluster: bool = False,
        request_timeout_seconds: float | None = None,
    ) -> None:
        if in_cluster and (kubeconfig or context):
            raise ValueError("in_cluster cannot be combined with kubeconfig or context")
        if request_timeout_seconds is not None and request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        self._kubeconfig = kubeconfig
        self._context = context
        self._in_cluster = in_cluster
        self._request_timeout = request_timeout_seconds
        self._client: Any = None
        self._lock = threading.Lock()

    def _get_client(self) -> Any:
        with self._lock:
            if self._client is None:
                self._client = k8s_client.CoreV1Api(self._build_api_client())
            return self._client

    def _build_api_client(self) -> Any:
        if self._in_cluster:
            return _in_cluster_api_client()
        if self._kubeconfig or self._context:
            return k8s_config.new_client_from_config(
                config_file=self._kubeconfig, context=self._context
            )
        try:
            return k8s_config.new_client_from_config()
        except k8s_config.ConfigException:
            logger.debug("No kubeconfig found, using in-cluster configuration")
            return _in_cluster_api_client()

    def read(self, namespace: str, secret_name: str) -> RawSecret:
        kwargs: dict[str, Any] = {}
        if self._request_timeout is not None:
            kwargs["_request_timeout"] = self._request_timeout

        try:
            secret = self._get_client().read_namespaced_secret(
                name=secret_name, namespace=namespace, **kwargs
            )
        except k8s_config.ConfigException as exc:
            raise SecretStoreError(f"Invalid Kubernetes client configuration: {exc}") from exc
        except ApiException as exc:
            if exc.status == 404:
                raise SecretNotFoundError(namespace, secret_name) from exc
            raise SecretStoreError(
                f"Kubernetes API error reading secret '{secret_name}' in namespace "
                f"'{namespace}': {exc.status} {exc.reason}"
            ) from exc

        try:
            binary_values = {
                key: base64.b64decode(value, validate=True)
                for key, value in (secret.data or {}).items()
            }
        except binascii.Error as exc:
            raise SecretStoreError(
                f"Secret '{secret_name}' contains a value that is not valid base64"
            ) from exc

        return RawSecret(
            binary_values=binary_values,
            string_values=dict(secret.string_data or {}),
        )

    def close(self) -> None:
        with self._lock:
            api, self._client = self._client, None
        if api is not None:
            api.api_client.close()


def _in_cluster_api_client() -> Any:
    configuration = k8s_client.Configuration()
    k8s_config.load_incluster_config(client_configuration=configuration)
    return k8s_client.ApiClient(configuration)
