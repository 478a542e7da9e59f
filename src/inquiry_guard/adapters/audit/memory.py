"""In-memory audit store for development and tests."""

from __future__ import annotations

import asyncio
from collections import Counter

from inquiry_guard.core.domain_types import AuditEntry


class InMemoryAuditStore:
    """Append-only audit store kept in process memory.

    Entries are lost on restart. Used when no ``DATABASE_URL`` is set.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._entries: list[AuditEntry] = []
        self._lock = asyncio.Lock()

    async def append(self, entry: AuditEntry) -> None:
        """Store an entry."""
        async with self._lock:
            self._entries.append(entry)

    async def query_by_user(self, user_id: str, limit: int = 50) -> list[AuditEntry]:
        """List a user's entries, newest first."""
        async with self._lock:
            matching = [e for e in self._entries if e.user_id == user_id]
        return self._newest_first(matching)[:limit]

    async def query_all(self, limit: int = 50) -> list[AuditEntry]:
        """List all entries, newest first."""
        async with self._lock:
            entries = list(self._entries)
        return self._newest_first(entries)[:limit]

    async def count_by_key_version(self) -> dict[int, int]:
        """Count stored entries per key version."""
        async with self._lock:
            return dict(Counter(e.key_version for e in self._entries))

    @staticmethod
    def _newest_first(entries: list[AuditEntry]) -> list[AuditEntry]:
        # Stable sort on reversed insertion order keeps later appends first on ties.
        return sorted(reversed(entries), key=lambda e: e.created_at, reverse=True)
