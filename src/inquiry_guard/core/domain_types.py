"""Domain types - Immutable Pydantic models defining core domain objects.

This module contains the data structures passed between the sanitizer,
the circuit breaker, the audit recorder and the orchestrator. All models
are frozen (immutable) so they can be shared between concurrent requests.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PIIType(str, Enum):
    """Classes of PII the sanitizer redacts."""

    EMAIL = "EMAIL"
    CREDIT_CARD = "CREDIT_CARD"
    SSN = "SSN"


class RedactedItem(BaseModel):
    """Number of matches redacted for one PII class.

    Attributes:
        type: The PII class.
        count: Number of occurrences replaced (always > 0).
    """

    model_config = ConfigDict(frozen=True)

    type: PIIType
    count: int = Field(gt=0)


class SanitizeResult(BaseModel):
    """Output of a sanitize pass.

    Attributes:
        redacted_message: Input text with every match replaced by its placeholder.
        redacted_items: Per-class counts in first-seen order.
    """

    model_config = ConfigDict(frozen=True)

    redacted_message: str
    redacted_items: tuple[RedactedItem, ...] = ()


class BreakerState(str, Enum):
    """States of the circuit breaker."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class BreakerStatus(BaseModel):
    """Point-in-time snapshot of a circuit breaker.

    Attributes:
        state: Current logical state.
        failures: Failures recorded since the breaker last closed.
        last_failure: ISO 8601 time of the last failure, if any.
        last_success: ISO 8601 time of the last success, if any.
    """

    model_config = ConfigDict(frozen=True)

    state: BreakerState
    failures: int = Field(ge=0)
    last_failure: str | None = None
    last_success: str | None = None


class AIResponse(BaseModel):
    """Answer from the downstream AI backend."""

    model_config = ConfigDict(frozen=True)

    answer: str
    processing_time_ms: int


class EncryptedPayload(BaseModel):
    """AES-256-GCM output with the key version needed to decrypt it.

    Binary fields are base64 text. Serialized with ``keyVersion`` as the
    key name so stored payloads stay readable by every reader of the
    audit table.

    Attributes:
        ciphertext: Base64 ciphertext (without the tag).
        iv: Base64 12-byte nonce.
        tag: Base64 16-byte authentication tag.
        key_version: Master key version used for encryption.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ciphertext: str
    iv: str
    tag: str
    key_version: int = Field(alias="keyVersion", ge=1)

    def to_json(self) -> str:
        """Serialize for storage in an audit entry."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> EncryptedPayload:
        """Parse a payload previously produced by ``to_json``."""
        return cls.model_validate_json(raw)


class AuditEntry(BaseModel):
    """One recorded inquiry attempt.

    Created exactly once per attempt and never modified afterwards.

    Attributes:
        id: Unique entry id.
        created_at: When the entry was recorded (UTC).
        user_id: The user who sent the inquiry.
        encrypted_original: Serialized EncryptedPayload of the original message.
        redacted_message: Sanitized message, plaintext.
        ai_response: Downstream answer, None when the call failed.
        success: Whether the downstream call succeeded.
        key_version: Key version of ``encrypted_original``.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    created_at: datetime
    user_id: str
    encrypted_original: str
    redacted_message: str
    ai_response: str | None = None
    success: bool
    key_version: int


class InquiryResult(BaseModel):
    """What the user gets back for a successful inquiry."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    redacted_message: str
    ai_response: str
    redacted_items: tuple[RedactedItem, ...] = ()
