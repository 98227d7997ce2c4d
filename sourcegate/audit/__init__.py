"""Append-only audit trail. Writes are best effort and never block the caller."""

from sourcegate.audit.logger import AuditFailure, AuditLogger
from sourcegate.audit.sinks import JsonlFileSink

__all__ = ["AuditFailure", "AuditLogger", "JsonlFileSink"]
