"""Immutable audit trail of secure inquiries."""

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inquiry_guard.models.base import BaseModel


class AuditEntryRecord(BaseModel):
    """One inquiry attempt, with the original message encrypted."""

    __tablename__ = "audit_entries"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Serialized EncryptedPayload (JSON)
    encrypted_original: Mapped[str] = mapped_column(Text, nullable=False)
    redacted_message: Mapped[str] = mapped_column(Text, nullable=False)
    ai_response: Mapped[str | None] = mapped_column(Text, nullable=True)  # Null if the call failed

    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    key_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


# Per-user history, newest first (most common query)
Index(
    "idx_audit_user_created",
    AuditEntryRecord.user_id,
    AuditEntryRecord.created_at.desc(),
)
Index("idx_audit_success", AuditEntryRecord.success)
# Key rotation queries
Index("idx_audit_key_version", AuditEntryRecord.key_version)
