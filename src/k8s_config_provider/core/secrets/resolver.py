"""Resolve Kubernetes secrets into flat configuration data."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from types import TracebackType
from typing import Any

from k8s_config_provider.core.config.base import KeyNotFoundPolicy
from k8s_config_provider.core.config.provider import ProviderConfig
from k8s_config_provider.core.metrics.registry import MeterRegistry
from k8s_config_provider.core.secrets.base import ConfigData, RawSecret, SecretStore
from k8s_config_provider.core.secrets.exceptions import (
    InvalidArgumentError,
    KeyNotFoundError,
    ResolutionFailureError,
)
from k8s_config_provider.core.secrets.providers import KubernetesSecretStore
from k8s_config_provider.core.utils import safe_call

logger = logging.getLogger(__name__)

RESOLUTIONS_METRIC = "k8s_config_provider_resolutions_total"
READ_DURATION_METRIC = "k8s_config_provider_read_duration_ms"


def merge_secret_values(raw: RawSecret) -> dict[str, str]:
    """Flatten a raw secret into a single string map.

    Binary values are decoded as UTF-8 and merged first; string values
    are merged second, so they win on key collisions.

    Raises:
        UnicodeDecodeError: If a binary value is not valid UTF-8.
    """
    data = {key: value.decode("utf-8") for key, value in raw.binary_values.items()}
    data.update(raw.string_values)
    return data


class SecretConfigProvider:
    """Resolve one secret reference into concrete configuration values.

    The provider must be configured with a namespace before use. Each
    :meth:`resolve` call performs a single blocking read against the
    secret store; nothing is cached, retried, or locked.

    Blank secret names always raise :class:`InvalidArgumentError`. When
    keys are requested, keys absent from the secret are dropped. Under
    the default ``ignore`` policy an empty result is returned when none
    of them exist; under ``fail`` a :class:`KeyNotFoundError` is raised.

    Args:
        store: Secret store to read from. Defaults to a
            :class:`KubernetesSecretStore` created on first use and
            owned (closed) by this provider.
        metrics: Optional registry receiving resolution counters and
            store read timings.
        clock: Injectable monotonic clock for testing.
            Defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        store: SecretStore | None = None,
        metrics: MeterRegistry | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._store = store
        self._owns_store = store is None
        self._metrics = metrics
        self._clock = clock or time.monotonic
        self._namespace: str | None = None
        self._key_not_found = KeyNotFoundPolicy.IGNORE
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        metrics: MeterRegistry | None = None,
    ) -> SecretConfigProvider:
        """Build a configured provider backed by its own Kubernetes store."""
        store = KubernetesSecretStore(
            kubeconfig=config.kubeconfig,
            context=config.context,
            in_cluster=config.in_cluster,
            request_timeout_seconds=config.request_timeout_seconds,
        )
        provider = cls(store, metrics=metrics)
        provider._owns_store = True
        provider.configure(config.to_options())
        return provider

    @property
    def namespace(self) -> str | None:
        """Namespace bound by :meth:`configure`, or ``None``."""
        return self._namespace

    @property
    def key_not_found(self) -> KeyNotFoundPolicy:
        return self._key_not_found

    def configure(self, options: Mapping[str, Any]) -> None:
        """Bind the namespace and missing-key policy.

        Recognised options are ``namespace`` (required) and
        ``key_not_found`` (``"ignore"`` or ``"fail"``). Other options are
        ignored so a host can pass its full option map.

        Raises:
            InvalidArgumentError: If ``namespace`` is missing or blank, or
                ``key_not_found`` is not a known policy.
        """
        namespace = options.get("namespace")
        if namespace is None or (isinstance(namespace, str) and not namespace.strip()):
            raise InvalidArgumentError("No namespace specified. Review your configuration.")
        if not isinstance(namespace, str):
            raise InvalidArgumentError(
                f"namespace must be a string, got {type(namespace).__name__}"
            )

        policy = _parse_policy(options.get("key_not_found", KeyNotFoundPolicy.IGNORE))

        self._namespace = namespace
        self._key_not_found = policy
        logger.debug("Configured namespace '%s' (key_not_found=%s)", namespace, policy.value)

    def resolve(
        self,
        secret_name: str | None,
        keys: Iterable[str] | None = None,
    ) -> ConfigData:
        """Retrieve the data held by a secret.

        Args:
            secret_name: Name of the secret where the data resides.
            keys: Keys whose values should be returned. ``None`` returns
                every key in the secret.

        Returns:
            The merged, optionally filtered, data with no TTL.

        Raises:
            InvalidArgumentError: If ``secret_name`` is blank or the
                provider is not configured or closed.
            ResolutionFailureError: If the secret store read fails.
            KeyNotFoundError: Under the ``fail`` policy, if none of the
                requested keys exist.
        """
        if isinstance(keys, str):
            raise InvalidArgumentError("keys must be a collection of key names, not a string")
        requested = frozenset(keys) if keys is not None else None
        if requested is None:
            logger.info("Read data from secret '%s'", secret_name)
        else:
            logger.info("Read keys %s from secret '%s'", sorted(requested), secret_name)

        if secret_name is None or not secret_name.strip():
            self._count("invalid_argument")
            raise InvalidArgumentError(
                "secret_name cannot be None or empty. Review your configuration."
            )
        if self._closed:
            self._count("invalid_argument")
            raise InvalidArgumentError("Provider is closed")
        namespace = self._namespace
        if namespace is None:
            self._count("invalid_argument")
            raise InvalidArgumentError("No namespace specified. Review your configuration.")

        start = self._clock()
        try:
            data = merge_secret_values(self._get_store().read(namespace, secret_name))
        except Exception as exc:
            self._time_read(start, "failure")
            self._count("failure")
            raise ResolutionFailureError(secret_name, namespace, exc) from exc
        self._time_read(start, "success")

        if requested is not None:
            data = {key: value for key, value in data.items() if key in requested}
            missing = requested - data.keys()
            if missing:
                logger.debug(
                    "Keys %s not present in secret '%s'", sorted(missing), secret_name
                )
            if requested and not data and self._key_not_found is KeyNotFoundPolicy.FAIL:
                self._count("key_not_found")
                raise KeyNotFoundError(secret_name, requested)

        self._count("success")
        return ConfigData(data=data)

    def close(self) -> None:
        """Close the secret store if this provider owns it. Never raises.

        Later calls to :meth:`resolve` raise :class:`InvalidArgumentError`.
        """
        if self._closed:
            return
        self._closed = True
        store = self._store
        if store is None or not self._owns_store:
            return
        safe_call(store.close, logger, "Failed to close secret store %s", type(store).__name__)

    def __enter__(self) -> SecretConfigProvider:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- internal helpers ---------------------------------------------------

    def _get_store(self) -> SecretStore:
        if self._store is None:
            self._store = KubernetesSecretStore()
            self._owns_store = True
        return self._store

    def _count(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.counter(RESOLUTIONS_METRIC, tags={"outcome": outcome})

    def _time_read(self, start: float, outcome: str) -> None:
        if self._metrics is not None:
            duration_ms = (self._clock() - start) * 1000
            self._metrics.timer(READ_DURATION_METRIC, duration_ms, tags={"outcome": outcome})


def _parse_policy(value: Any) -> KeyNotFoundPolicy:
    if isinstance(value, KeyNotFoundPolicy):
        return value
    try:
        return KeyNotFoundPolicy(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in KeyNotFoundPolicy)
        raise InvalidArgumentError(
            f"Invalid key_not_found policy '{value}'. Expected one of: {allowed}"
        ) from None
