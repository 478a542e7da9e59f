"""Secure inquiry API route."""

import re
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from inquiry_guard.core.domain_types import PIIType
from inquiry_guard.core.orchestrator import InquiryOrchestrator
from inquiry_guard.entrypoints.api.deps import get_orchestrator

router = APIRouter(prefix="/secure-inquiry", tags=["inquiry"])

OrchestratorDep = Annotated[InquiryOrchestrator, Depends(get_orchestrator)]

# Unpaired surrogates (from JSON \u escapes) have no UTF-8 encoding
_LONE_SURROGATE = re.compile(r"[\ud800-\udfff]")


class SecureInquiryRequest(BaseModel):
    """Request body for a secure inquiry."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    message: str = Field(min_length=1, max_length=10000)

    @field_validator("user_id", "message", mode="before")
    @classmethod
    def replace_lone_surrogates(cls, value: Any) -> Any:
        """Replace unpaired surrogates with U+FFFD."""
        if isinstance(value, str):
            return _LONE_SURROGATE.sub("\ufffd", value)
        return value


class RedactedItemResponse(BaseModel):
    """Count of redacted matches for one PII type."""

    type: PIIType
    count: int


class SecureInquiryResponse(BaseModel):
    """Response for a processed inquiry."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    redacted_message: str = Field(alias="redactedMessage")
    ai_response: str = Field(alias="aiResponse")
    redacted_items: list[RedactedItemResponse] = Field(alias="redactedItems")


@router.post("", response_model=SecureInquiryResponse)
async def process_inquiry(
    body: SecureInquiryRequest,
    orchestrator: OrchestratorDep,
) -> SecureInquiryResponse:
    """Process a secure inquiry with PII sanitization.

    1. Sanitizes the message (removes PII)
    2. Calls the AI backend through the circuit breaker
    3. Writes an audit entry (also on failure)
    4. Returns the sanitized response

    Args:
        body: The inquiry.
        orchestrator: Pipeline orchestrator dependency.

    Returns:
        The redacted message, the AI answer and the redaction summary.
    """
    result = await orchestrator.process(body.user_id, body.message)

    return SecureInquiryResponse(
        user_id=result.user_id,
        redacted_message=result.redacted_message,
        ai_response=result.ai_response,
        redacted_items=[
            RedactedItemResponse(type=item.type, count=item.count) for item in result.redacted_items
        ],
    )
