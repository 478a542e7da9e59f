"""Domain-specific exceptions.

All exceptions in the inquiry_guard system inherit from InquiryGuardError,
making it easy to catch all system errors while still being able
to handle specific error types.

Each exception carries a stable ``code`` and an HTTP ``status_code`` so the
API layer can map it to a response without inspecting its type.
"""

from __future__ import annotations


class InquiryGuardError(Exception):
    """Base exception for all inquiry_guard errors.

    Attributes:
        code: Stable machine-readable error code.
        status_code: HTTP status the API layer answers with.
        message: Human-readable description.
    """

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Error description.
        """
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Render the error as an API error body."""
        return {"code": self.code, "message": self.message}


class ServiceUnavailableError(InquiryGuardError):
    """Circuit breaker is open.

    The downstream call was rejected outright, without being attempted.
    This is transient - callers should back off and retry later.
    """

    code = "SERVICE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "Service Busy") -> None:
        """Initialize ServiceUnavailableError.

        Args:
            message: Error description.
        """
        super().__init__(message)


class DownstreamError(InquiryGuardError):
    """The downstream AI call was attempted and failed.

    Covers every failure mode of the call: raised exceptions, timeouts
    and simulated failures. The failure has already been recorded against
    the circuit breaker when this is raised.
    """

    code = "DOWNSTREAM_ERROR"
    status_code = 502


class CryptoKeyUnavailableError(InquiryGuardError):
    """The master key for a key version could not be resolved.

    Fatal for the operation that needed it. Never replaced by a weaker
    key outside of an explicitly enabled development fallback.

    Attributes:
        version: The key version that failed to resolve.
    """

    code = "CRYPTO_KEY_UNAVAILABLE"

    def __init__(self, message: str, version: int) -> None:
        """Initialize CryptoKeyUnavailableError.

        Args:
            message: Error description.
            version: The key version that failed to resolve.
        """
        super().__init__(message)
        self.version = version


class DecryptionError(InquiryGuardError):
    """Payload failed authentication or could not be parsed.

    Raised on tag mismatch (wrong user, wrong key, tampered data) and on
    malformed payloads. Decryption fails closed: no partial plaintext is
    ever returned.
    """

    code = "DECRYPTION_FAILED"


class PersistenceError(InquiryGuardError):
    """Audit store rejected or failed an operation.

    Must be surfaced to operators but must not mask the result of an
    inquiry that already succeeded.
    """

    code = "PERSISTENCE_ERROR"
