"""Audit event types and sinks."""

from k8s_config_provider.core.audit.sinks import (
    AuditSink,
    CompositeAuditSink,
    FileAuditSink,
    LoggingAuditSink,
)
from k8s_config_provider.core.audit.types import (
    AuditAction,
    AuditEvent,
    AuditStatus,
)

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditSink",
    "AuditStatus",
    "CompositeAuditSink",
    "FileAuditSink",
    "LoggingAuditSink",
]
