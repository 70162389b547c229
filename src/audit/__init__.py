"""Audit logging package."""

from src.audit.events import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from src.audit.logger import AuditLogger, get_audit_logger

__all__ = [
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    "AuditLogger",
    "get_audit_logger",
]
