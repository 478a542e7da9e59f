"""Safety components: PII redaction and the downstream circuit breaker."""

from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig, ResilientInvoker
from .pii import PII_PATTERNS, contains_pii, sanitize, scan_for_pii

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "PII_PATTERNS",
    "ResilientInvoker",
    "contains_pii",
    "sanitize",
    "scan_for_pii",
]
