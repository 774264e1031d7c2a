"""Audit-aware wrapper for secret resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from k8s_config_provider.core.audit.sinks import AuditSink
from k8s_config_provider.core.audit.types import AuditAction, AuditEvent, AuditStatus
from k8s_config_provider.core.secrets.base import ConfigData, SecretReference
from k8s_config_provider.core.secrets.exceptions import KeyNotFoundError
from k8s_config_provider.core.secrets.resolver import SecretConfigProvider
from k8s_config_provider.core.utils import safe_call

logger = logging.getLogger(__name__)


class SecretsAuditLogger:
    """Decorator that emits audit events for secret access.

    Wraps a :class:`SecretConfigProvider` and emits an
    :class:`AuditEvent` with :attr:`AuditAction.SECRET_ACCESSED` for
    every ``resolve()`` call, including failed ones. Only key names are
    recorded; secret **values are never included** in the audit trail.

    Args:
        provider: The underlying provider to delegate to.
        sink: Audit sink that receives the events.
        actor: Actor name recorded in audit events.
            Defaults to ``"k8s_config_provider"``.
    """

    def __init__(
        self,
        provider: SecretConfigProvider,
        sink: AuditSink,
        actor: str = "k8s_config_provider",
    ) -> None:
        self._provider = provider
        self._sink = sink
        self._actor = actor

    @property
    def namespace(self) -> str | None:
        return self._provider.namespace

    def configure(self, options: Mapping[str, Any]) -> None:
        self._provider.configure(options)

    def resolve(
        self,
        secret_name: str | None,
        keys: Iterable[str] | None = None,
    ) -> ConfigData:
        """Resolve a secret and emit an audit event."""
        # materialize once so iterators survive both the call and the event
        requested = None if keys is None or isinstance(keys, str) else sorted(keys)
        try:
            result = self._provider.resolve(secret_name, keys if requested is None else requested)
        except Exception as exc:
            status = AuditStatus.WARNING if isinstance(exc, KeyNotFoundError) else AuditStatus.FAILURE
            self._emit(secret_name, requested, status, error=str(exc))
            raise
        self._emit(secret_name, requested, AuditStatus.SUCCESS, returned=sorted(result.data))
        return result

    def close(self) -> None:
        self._provider.close()
        safe_call(self._sink.close, logger, "Failed to close audit sink %s", type(self._sink).__name__)

    def _emit(
        self,
        secret_name: str | None,
        requested: list[str] | None,
        status: AuditStatus,
        returned: list[str] | None = None,
        error: str | None = None,
    ) -> None:
        metadata: dict[str, str] = {
            "namespace": self._provider.namespace or "",
            "secret_name": secret_name or "",
        }
        if requested is not None:
            metadata["requested_keys"] = ",".join(requested)
        if returned is not None:
            metadata["returned_keys"] = ",".join(returned)
        if error is not None:
            metadata["error"] = error

        event = AuditEvent(
            action=AuditAction.SECRET_ACCESSED,
            actor=self._actor,
            resource=str(SecretReference(metadata["namespace"], metadata["secret_name"])),
            status=status,
            metadata=metadata,
        )

        safe_call(
            lambda: self._sink.emit(event),
            logger,
            "Failed to emit audit event for secret %s",
            secret_name,
        )
