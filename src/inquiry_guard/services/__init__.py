"""Application services."""

from .audit import AuditRecorder

__all__ = ["AuditRecorder"]
