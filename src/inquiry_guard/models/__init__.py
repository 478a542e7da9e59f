"""SQLAlchemy models for the audit database."""
from inquiry_guard.models.base import BaseModel
from inquiry_guard.models.audit_entry import AuditEntryRecord

__all__ = [
    "BaseModel",
    "AuditEntryRecord",
]
