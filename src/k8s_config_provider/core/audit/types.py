"""Audit event types and models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditAction(str, Enum):
    """Standard audit actions."""

    SECRET_ACCESSED = "secret_accessed"


class AuditStatus(str, Enum):
    """Audit event status."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


@dataclass
class AuditEvent:
    """A single audit event.

    Events describe which secret keys were accessed, never their values.

    Args:
        action: The action that occurred (enum or custom string).
        actor: Who performed the action (e.g. the embedding service).
        resource: What was acted upon, as ``namespace/secret_name``.
        status: Outcome of the action.
        timestamp: When the event occurred.
        metadata: Additional key-value data.
    """

    action: AuditAction | str
    actor: str
    resource: str
    status: AuditStatus
    timestamp: datetime = field(default_factory=_utcnow)
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "action": self.action.value
            if isinstance(self.action, AuditAction)
            else self.action,
            "actor": self.actor,
            "resource": self.resource,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }
