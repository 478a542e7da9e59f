"""Mock AI backend for development and testing.

Simulates a slow, unreliable downstream AI service without calling a
real API. Latency, failure rate, randomness and the sleep function are
all injectable so tests can run deterministically and instantly.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable

from inquiry_guard.core.domain_types import AIResponse

Sleep = Callable[[float], Awaitable[None]]


class SimulatedFailure(Exception):
    """Failure injected by the mock backend."""


class MockAIBackend:
    """Mock implementation of AIBackend.

    Attributes:
        delay_seconds: Simulated processing latency.
        failure_rate: Probability in [0, 1] that a call fails.
    """

    def __init__(
        self,
        delay_seconds: float = 2.0,
        failure_rate: float = 0.5,
        rng: random.Random | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the mock backend.

        Args:
            delay_seconds: Simulated processing latency.
            failure_rate: Probability that a call fails.
            rng: Random source for the failure decision. Seed it for
                reproducible runs.
            sleep: Async sleep used for the simulated latency.

        Raises:
            ValueError: If failure_rate is outside [0, 1] or delay is negative.
        """
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError(f"failure_rate must be between 0 and 1, got {failure_rate}")
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        self.delay_seconds = delay_seconds
        self.failure_rate = failure_rate
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def invoke(self, message: str) -> AIResponse:
        """Answer a message after the simulated delay.

        Args:
            message: Redacted message text.

        Returns:
            AIResponse with a canned answer.

        Raises:
            SimulatedFailure: With probability ``failure_rate``.
        """
        start = time.monotonic()
        await self._sleep(self.delay_seconds)

        if self._rng.random() < self.failure_rate:
            raise SimulatedFailure("Simulated AI service failure")

        processing_time_ms = int((time.monotonic() - start) * 1000)
        return AIResponse(
            answer=(
                "This is a mock AI response to your message. "
                f"Your query was {len(message)} characters long."
            ),
            processing_time_ms=processing_time_ms,
        )
