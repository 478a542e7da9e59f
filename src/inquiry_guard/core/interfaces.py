"""Protocol definitions for all external dependencies.

This module defines the interfaces (Protocols) that adapters must implement.
The core domain only depends on these protocols, never on concrete
implementations: the downstream AI backend, the audit store and the
master-key provider are all swappable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .domain_types import AIResponse, AuditEntry


@runtime_checkable
class AIBackend(Protocol):
    """Interface for the downstream AI capability.

    The backend only ever receives redacted text. Any exception raised
    by ``invoke`` is treated as a failed call.
    """

    async def invoke(self, message: str) -> AIResponse:
        """Send a message and return the backend's answer.

        Args:
            message: Redacted user message.

        Returns:
            AIResponse with the answer text.

        Raises:
            Exception: Any failure; the caller records and wraps it.
        """
        ...


@runtime_checkable
class AuditStore(Protocol):
    """Interface for audit persistence.

    Implementations must be safe for concurrent use. Entries are
    append-only; the core never updates or deletes them.
    """

    async def append(self, entry: AuditEntry) -> None:
        """Persist a new entry.

        Args:
            entry: The entry to store.
        """
        ...

    async def query_by_user(self, user_id: str, limit: int = 50) -> list[AuditEntry]:
        """Return a user's entries, newest first.

        Args:
            user_id: User to filter by.
            limit: Maximum entries to return.
        """
        ...

    async def query_all(self, limit: int = 50) -> list[AuditEntry]:
        """Return entries of all users, newest first.

        Args:
            limit: Maximum entries to return.
        """
        ...

    async def count_by_key_version(self) -> dict[int, int]:
        """Return the number of stored entries per key version."""
        ...


@runtime_checkable
class KeyProvider(Protocol):
    """Interface for master key material.

    New versions can be added at any time; old versions must stay
    resolvable for as long as entries encrypted under them are kept.
    """

    def get_master_key(self, version: int) -> bytes:
        """Resolve the 32-byte master secret for a key version.

        Args:
            version: Key version (>= 1).

        Raises:
            CryptoKeyUnavailableError: If the version cannot be resolved.
        """
        ...
