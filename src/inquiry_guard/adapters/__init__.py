"""Adapters - Infrastructure implementations of core interfaces.

This package contains the concrete implementations of the
Protocol interfaces defined in the core module.

Adapters are organized by type:
- audit/: Audit stores (in-memory, PostgreSQL)
- llm/: Downstream AI backends (mock)
"""

from .audit import InMemoryAuditStore, PostgresAuditStore
from .llm import MockAIBackend

__all__ = [
    # Audit stores
    "InMemoryAuditStore",
    "PostgresAuditStore",
    # AI backends
    "MockAIBackend",
]
