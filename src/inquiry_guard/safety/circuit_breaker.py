"""Circuit Breaker - Protects the pipeline from a failing downstream AI.

This module implements the circuit breaker pattern around the downstream
AI backend:

- CLOSED: calls go through; consecutive failures are counted.
- OPEN: calls are rejected immediately with ServiceUnavailableError.
- HALF_OPEN: calls go through again; the next outcome decides whether
  the breaker closes or re-opens.

The OPEN -> HALF_OPEN transition is pull-based: it is evaluated at the
start of every invocation, outcome recording and status read. There is
no background timer.

Every read-then-write on breaker state happens under one lock. The
downstream call itself runs outside the lock, concurrently with other
callers.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from inquiry_guard.core.domain_types import BreakerState, BreakerStatus
from inquiry_guard.core.exceptions import DownstreamError, ServiceUnavailableError

if TYPE_CHECKING:
    from inquiry_guard.core.domain_types import AIResponse
    from inquiry_guard.core.interfaces import AIBackend

logger = structlog.get_logger()

Clock = Callable[[], float]


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for circuit breaker limits.

    Attributes:
        failure_threshold: Consecutive failures that open the breaker.
        reset_timeout_seconds: Time after the last failure before a trial call.
        call_timeout_seconds: Optional bound on a downstream call; a timeout
            counts as a failure.
    """

    failure_threshold: int = 3
    reset_timeout_seconds: float = 30.0
    call_timeout_seconds: float | None = None


@dataclass
class _State:
    state: BreakerState = BreakerState.CLOSED
    failures: int = 0
    last_failure_at: float | None = None
    last_success_at: float | None = None


def _to_iso(timestamp: float | None) -> str | None:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, UTC).isoformat()


class CircuitBreaker:
    """Thread-safe circuit breaker state machine.

    Each instance owns its state, so independent breakers (one per
    downstream dependency) can coexist in one process.

    Usage:
        breaker = CircuitBreaker(CircuitBreakerConfig())
        breaker.before_call()  # Raises ServiceUnavailableError if open
        ...
        breaker.record_success()  # or breaker.record_failure()
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        clock: Clock = time.time,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            config: Configuration for limits. Uses defaults if not provided.
            clock: Returns the current time in epoch seconds.
        """
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = _State()

    def before_call(self) -> None:
        """Gate a downstream call.

        Raises:
            ServiceUnavailableError: If the breaker is open.
        """
        with self._lock:
            self._check_transition()
            if self._state.state is BreakerState.OPEN:
                failures = self._state.failures
            else:
                return

        logger.warning("circuit_breaker_rejected", failures=failures)
        raise ServiceUnavailableError()

    def record_success(self) -> None:
        """Record a successful downstream call."""
        with self._lock:
            self._check_transition()
            self._state.last_success_at = self._clock()

            if self._state.state is BreakerState.HALF_OPEN:
                self._state.state = BreakerState.CLOSED
                self._state.failures = 0
                logger.info("circuit_breaker_closed")
            elif self._state.state is BreakerState.CLOSED:
                self._state.failures = 0

    def record_failure(self) -> None:
        """Record a failed downstream call."""
        with self._lock:
            self._check_transition()
            self._state.failures += 1
            self._state.last_failure_at = self._clock()

            if self._state.state is BreakerState.HALF_OPEN:
                self._state.state = BreakerState.OPEN
                logger.warning("circuit_breaker_reopened", failures=self._state.failures)
            elif (
                self._state.state is BreakerState.CLOSED
                and self._state.failures >= self.config.failure_threshold
            ):
                self._state.state = BreakerState.OPEN
                logger.warning("circuit_breaker_opened", failures=self._state.failures)

    def get_status(self) -> BreakerStatus:
        """Return the current status, applying any due OPEN -> HALF_OPEN transition."""
        with self._lock:
            self._check_transition()
            return BreakerStatus(
                state=self._state.state,
                failures=self._state.failures,
                last_failure=_to_iso(self._state.last_failure_at),
                last_success=_to_iso(self._state.last_success_at),
            )

    def reset(self) -> None:
        """Return the breaker to its initial closed state."""
        with self._lock:
            self._state = _State()
        logger.info("circuit_breaker_reset")

    def _check_transition(self) -> None:
        # Caller must hold self._lock.
        if (
            self._state.state is BreakerState.OPEN
            and self._state.last_failure_at is not None
            and self._clock() - self._state.last_failure_at >= self.config.reset_timeout_seconds
        ):
            self._state.state = BreakerState.HALF_OPEN
            logger.info("circuit_breaker_half_open")


class ResilientInvoker:
    """Calls the downstream AI backend through a circuit breaker.

    An open breaker rejects the call before any downstream work is done.
    Every attempted call is recorded as exactly one success or failure.
    """

    def __init__(
        self,
        backend: AIBackend,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        """Initialize the invoker.

        Args:
            backend: The downstream AI capability.
            breaker: Breaker guarding the backend. A default one is created
                if not provided.
        """
        self.backend = backend
        self.breaker = breaker or CircuitBreaker()

    async def invoke(self, message: str) -> AIResponse:
        """Send a redacted message downstream.

        Args:
            message: Redacted message text.

        Returns:
            The backend's response.

        Raises:
            ServiceUnavailableError: If the breaker is open (no call made).
            DownstreamError: If the call was attempted and failed.
        """
        self.breaker.before_call()

        timeout = self.breaker.config.call_timeout_seconds
        try:
            if timeout is not None:
                response = await asyncio.wait_for(self.backend.invoke(message), timeout)
            else:
                response = await self.backend.invoke(message)
        except TimeoutError as e:
            self.breaker.record_failure()
            logger.error("downstream_timeout", timeout_seconds=timeout)
            raise DownstreamError("Downstream call timed out") from e
        except Exception as e:
            self.breaker.record_failure()
            logger.error(
                "downstream_call_failed",
                error=str(e),
                circuit_state=self.breaker.get_status().state.value,
            )
            raise DownstreamError(str(e) or "Unknown AI service error") from e

        self.breaker.record_success()
        logger.debug("downstream_call_succeeded", processing_time_ms=response.processing_time_ms)
        return response

    def get_status(self) -> BreakerStatus:
        """Return the breaker status."""
        return self.breaker.get_status()

    def reset(self) -> None:
        """Administratively reset the breaker."""
        self.breaker.reset()
