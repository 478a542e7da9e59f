"""Audit entry API routes."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from inquiry_guard.entrypoints.api.deps import get_recorder
from inquiry_guard.services.audit import AuditRecorder

router = APIRouter(prefix="/audit-entries", tags=["audit"])

RecorderDep = Annotated[AuditRecorder, Depends(get_recorder)]


class AuditEntryResponse(BaseModel):
    """A single audit entry. The original message stays encrypted."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    created_at: datetime = Field(alias="createdAt")
    user_id: str = Field(alias="userId")
    encrypted_original: str = Field(alias="originalMessage")
    redacted_message: str = Field(alias="redactedMessage")
    ai_response: str | None = Field(alias="aiResponse")
    success: bool
    key_version: int = Field(alias="keyVersion")


class AuditEntryListResponse(BaseModel):
    """List of audit entries, newest first."""

    items: list[AuditEntryResponse]
    limit: int


@router.get("", response_model=AuditEntryListResponse)
async def list_audit_entries(
    recorder: RecorderDep,
    user_id: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> AuditEntryListResponse:
    """List audit entries, newest first.

    Args:
        recorder: Audit recorder dependency.
        user_id: Restrict to one user.
        limit: Maximum entries to return.

    Returns:
        Audit entries with the original messages still encrypted.
    """
    if user_id:
        entries = await recorder.list_for_user(user_id, limit)
    else:
        entries = await recorder.list_recent(limit)

    return AuditEntryListResponse(
        items=[AuditEntryResponse.model_validate(e.model_dump()) for e in entries],
        limit=limit,
    )
