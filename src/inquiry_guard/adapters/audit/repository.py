"""PostgreSQL audit store."""

from __future__ import annotations

from typing import Any

import structlog
from asyncpg import Pool
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from inquiry_guard.core.domain_types import AuditEntry
from inquiry_guard.models import AuditEntryRecord

logger = structlog.get_logger()

_COLUMNS = (
    "id, created_at, user_id, encrypted_original, redacted_message, "
    "ai_response, success, key_version"
)


def schema_statements() -> list[str]:
    """Return the DDL for the audit table and its indexes.

    Compiled from the SQLAlchemy model so there is a single definition of
    the table.
    """
    table = AuditEntryRecord.__table__
    dialect = postgresql.dialect()
    statements = [str(CreateTable(table, if_not_exists=True).compile(dialect=dialect))]
    for index in sorted(table.indexes, key=lambda i: str(i.name)):
        statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements


def _row_to_entry(row: Any) -> AuditEntry:
    return AuditEntry(
        id=row["id"],
        created_at=row["created_at"],
        user_id=row["user_id"],
        encrypted_original=row["encrypted_original"],
        redacted_message=row["redacted_message"],
        ai_response=row["ai_response"],
        success=row["success"],
        key_version=row["key_version"],
    )


class PostgresAuditStore:
    """Audit store backed by the ``audit_entries`` table."""

    def __init__(self, pool: Pool) -> None:
        """Initialize the store.

        Args:
            pool: Database connection pool.
        """
        self._pool = pool

    async def ensure_schema(self) -> None:
        """Create the audit table and indexes if they do not exist."""
        async with self._pool.acquire() as conn:
            for statement in schema_statements():
                await conn.execute(statement)
        logger.info("audit_schema_ready")

    async def append(self, entry: AuditEntry) -> None:
        """Insert an audit entry.

        Args:
            entry: Entry to insert.
        """
        query = f"""
            INSERT INTO audit_entries ({_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
        """
        async with self._pool.acquire() as conn:
            # Convert UUIDs to strings at database boundary
            await conn.execute(
                query,
                str(entry.id),
                entry.created_at,
                entry.user_id,
                entry.encrypted_original,
                entry.redacted_message,
                entry.ai_response,
                entry.success,
                entry.key_version,
            )

    async def query_by_user(self, user_id: str, limit: int = 50) -> list[AuditEntry]:
        """List a user's entries, newest first.

        Args:
            user_id: User to filter by.
            limit: Maximum entries to return.

        Returns:
            Audit entries with ciphertext intact.
        """
        query = f"""
            SELECT {_COLUMNS} FROM audit_entries
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, user_id, limit)
        return [_row_to_entry(row) for row in rows]

    async def query_all(self, limit: int = 50) -> list[AuditEntry]:
        """List entries of all users, newest first.

        Args:
            limit: Maximum entries to return.

        Returns:
            Audit entries with ciphertext intact.
        """
        query = f"""
            SELECT {_COLUMNS} FROM audit_entries
            ORDER BY created_at DESC
            LIMIT $1
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, limit)
        return [_row_to_entry(row) for row in rows]

    async def count_by_key_version(self) -> dict[int, int]:
        """Count stored entries per key version."""
        query = """
            SELECT key_version, COUNT(*) AS count
            FROM audit_entries
            GROUP BY key_version
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query)
        return {row["key_version"]: row["count"] for row in rows}
