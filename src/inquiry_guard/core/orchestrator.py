"""Inquiry Orchestrator - sequences the secure inquiry pipeline.

This module implements the inquiry workflow:
1. Sanitize the message (redact PII)
2. Send the redacted message downstream through the circuit breaker
3. Record an audit entry for every outcome, success or failure
4. Return the redacted result, or re-raise the downstream error

Audit failures never change the user-visible outcome: they are logged at
error level for operators and the primary result is returned as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from inquiry_guard.safety.pii import contains_pii, sanitize

from .domain_types import AIResponse, InquiryResult
from .exceptions import InquiryGuardError

if TYPE_CHECKING:
    from inquiry_guard.safety.circuit_breaker import ResilientInvoker
    from inquiry_guard.services.audit import AuditRecorder

logger = structlog.get_logger()


class InquiryOrchestrator:
    """Runs one inquiry through sanitizer, invoker and audit recorder.

    The three components never call each other; this class is the only
    place that knows their order.
    """

    def __init__(self, invoker: ResilientInvoker, recorder: AuditRecorder) -> None:
        """Initialize the orchestrator.

        Args:
            invoker: Breaker-protected downstream caller.
            recorder: Audit recorder.
        """
        self.invoker = invoker
        self.recorder = recorder

    async def process(self, user_id: str, message: str) -> InquiryResult:
        """Process a secure inquiry.

        Args:
            user_id: The user sending the inquiry.
            message: Raw message, possibly containing PII.

        Returns:
            InquiryResult with the redacted message and the AI answer.

        Raises:
            ServiceUnavailableError: If the circuit breaker is open.
            DownstreamError: If the downstream call failed.
        """
        log = logger.bind(user_id=user_id)

        sanitized = sanitize(message)
        if contains_pii(sanitized.redacted_message):
            # Sequential scans can leave a shape a later pattern would catch.
            log.warning("residual_pii_after_sanitize")

        log.info(
            "inquiry_sanitized",
            redacted_items={item.type.value: item.count for item in sanitized.redacted_items},
        )

        try:
            response: AIResponse = await self.invoker.invoke(sanitized.redacted_message)
        except InquiryGuardError as e:
            log.warning("inquiry_failed", code=e.code)
            await self._audit(user_id, message, sanitized.redacted_message, None, False)
            raise

        await self._audit(user_id, message, sanitized.redacted_message, response.answer, True)

        return InquiryResult(
            user_id=user_id,
            redacted_message=sanitized.redacted_message,
            ai_response=response.answer,
            redacted_items=sanitized.redacted_items,
        )

    async def _audit(
        self,
        user_id: str,
        original_message: str,
        redacted_message: str,
        ai_response: str | None,
        success: bool,
    ) -> None:
        try:
            await self.recorder.record(
                user_id=user_id,
                original_message=original_message,
                redacted_message=redacted_message,
                ai_response=ai_response,
                success=success,
            )
        except InquiryGuardError as e:
            # Surfaced to operators; never masks the inquiry outcome.
            logger.error(
                "audit_write_failed",
                user_id=user_id,
                code=e.code,
                error=e.message,
                inquiry_success=success,
            )
