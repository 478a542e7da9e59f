"""Audit recorder service.

Records every inquiry attempt, successful or not. The original message is
encrypted with the user's derived key before it leaves this service; the
redacted message is stored in plaintext for review.

Reads return entries with ciphertext intact. Decrypting an original is a
separate, explicit call that needs the user id used at encryption time.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from pydantic import ValidationError

from inquiry_guard.core.domain_types import AuditEntry, EncryptedPayload
from inquiry_guard.core.exceptions import (
    CryptoKeyUnavailableError,
    DecryptionError,
    PersistenceError,
)

if TYPE_CHECKING:
    from inquiry_guard.core.interfaces import AuditStore
    from inquiry_guard.crypto import AuditCipher

logger = structlog.get_logger()

DEFAULT_LIMIT = 50


class AuditRecorder:
    """Encrypts and persists audit entries."""

    def __init__(self, cipher: AuditCipher, store: AuditStore) -> None:
        """Initialize the recorder.

        Args:
            cipher: Cipher used for the original messages.
            store: Persistence collaborator.
        """
        self.cipher = cipher
        self.store = store

    async def record(
        self,
        user_id: str,
        original_message: str,
        redacted_message: str,
        ai_response: str | None,
        success: bool,
    ) -> AuditEntry:
        """Encrypt the original message and append an audit entry.

        Args:
            user_id: The user who sent the inquiry.
            original_message: Unredacted message; stored encrypted only.
            redacted_message: Sanitized message; stored in plaintext.
            ai_response: Downstream answer, None when the call failed.
            success: Whether the downstream call succeeded.

        Returns:
            The stored entry.

        Raises:
            CryptoKeyUnavailableError: If the current key version cannot be
                resolved. Nothing is written.
            PersistenceError: If the message cannot be encrypted (e.g. it
                holds a lone surrogate) or the store fails.
        """
        try:
            payload = self.cipher.encrypt(original_message, user_id)
        except CryptoKeyUnavailableError:
            raise
        except Exception as e:
            logger.error("audit_encrypt_failed", user_id=user_id, error=str(e))
            raise PersistenceError(f"Failed to encrypt audit entry: {e}") from e

        entry = AuditEntry(
            id=uuid4(),
            created_at=datetime.now(UTC),
            user_id=user_id,
            encrypted_original=payload.to_json(),
            redacted_message=redacted_message,
            ai_response=ai_response,
            success=success,
            key_version=payload.key_version,
        )

        try:
            await self.store.append(entry)
        except Exception as e:
            logger.error("audit_append_failed", entry_id=str(entry.id), error=str(e))
            raise PersistenceError(f"Failed to write audit entry: {e}") from e

        logger.debug(
            "audit_entry_recorded",
            entry_id=str(entry.id),
            user_id=user_id,
            success=success,
            key_version=entry.key_version,
        )
        return entry

    async def list_for_user(self, user_id: str, limit: int = DEFAULT_LIMIT) -> list[AuditEntry]:
        """List a user's entries, newest first.

        Raises:
            PersistenceError: If the store fails.
        """
        try:
            return await self.store.query_by_user(user_id, limit)
        except Exception as e:
            raise PersistenceError(f"Failed to read audit entries: {e}") from e

    async def list_recent(self, limit: int = DEFAULT_LIMIT) -> list[AuditEntry]:
        """List entries of all users, newest first.

        Raises:
            PersistenceError: If the store fails.
        """
        try:
            return await self.store.query_all(limit)
        except Exception as e:
            raise PersistenceError(f"Failed to read audit entries: {e}") from e

    def reveal_original(self, entry: AuditEntry, user_id: str) -> str:
        """Decrypt the original message of an entry.

        Args:
            entry: Entry whose original to decrypt.
            user_id: The user the entry was encrypted for.

        Returns:
            The original, unredacted message.

        Raises:
            DecryptionError: If the stored payload is malformed or fails
                authentication (e.g. wrong user id).
            CryptoKeyUnavailableError: If the entry's key version is gone.
        """
        try:
            payload = EncryptedPayload.from_json(entry.encrypted_original)
        except ValidationError as e:
            raise DecryptionError("Malformed payload: not a valid encrypted payload") from e
        return self.cipher.decrypt(payload, user_id)
