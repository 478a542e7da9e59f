"""Core domain - types, errors and interfaces shared by every component.

The orchestrator lives in ``inquiry_guard.core.orchestrator`` and is not
re-exported here, since it depends on the safety package.
"""

from .domain_types import (
    AIResponse,
    AuditEntry,
    BreakerState,
    BreakerStatus,
    EncryptedPayload,
    InquiryResult,
    PIIType,
    RedactedItem,
    SanitizeResult,
)
from .exceptions import (
    CryptoKeyUnavailableError,
    DecryptionError,
    DownstreamError,
    InquiryGuardError,
    PersistenceError,
    ServiceUnavailableError,
)
from .interfaces import AIBackend, AuditStore, KeyProvider

__all__ = [
    # Domain types
    "AIResponse",
    "AuditEntry",
    "BreakerState",
    "BreakerStatus",
    "EncryptedPayload",
    "InquiryResult",
    "PIIType",
    "RedactedItem",
    "SanitizeResult",
    # Exceptions
    "InquiryGuardError",
    "ServiceUnavailableError",
    "DownstreamError",
    "CryptoKeyUnavailableError",
    "DecryptionError",
    "PersistenceError",
    # Interfaces
    "AIBackend",
    "AuditStore",
    "KeyProvider",
]
