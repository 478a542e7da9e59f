"""Audit persistence adapters."""

from inquiry_guard.adapters.audit.memory import InMemoryAuditStore
from inquiry_guard.adapters.audit.repository import PostgresAuditStore, schema_statements

__all__ = [
    "InMemoryAuditStore",
    "PostgresAuditStore",
    "schema_statements",
]
