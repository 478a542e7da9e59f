"""Unit tests for the inquiry orchestrator."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from inquiry_guard.adapters.audit import InMemoryAuditStore
from inquiry_guard.core.domain_types import PIIType
from inquiry_guard.core.exceptions import DownstreamError, ServiceUnavailableError
from inquiry_guard.core.orchestrator import InquiryOrchestrator
from inquiry_guard.crypto import AuditCipher, StaticKeyProvider
from inquiry_guard.safety.circuit_breaker import ResilientInvoker
from inquiry_guard.services.audit import AuditRecorder
from tests.fixtures.mocks import FailingAuditStore, ScriptedBackend


@pytest.fixture
def orchestrator(invoker: ResilientInvoker, recorder: AuditRecorder) -> InquiryOrchestrator:
    """Return an orchestrator over the scripted backend and in-memory store."""
    return InquiryOrchestrator(invoker=invoker, recorder=recorder)


class TestProcess:
    """Tests for InquiryOrchestrator.process."""

    async def test_success(
        self,
        orchestrator: InquiryOrchestrator,
        scripted_backend: ScriptedBackend,
        pii_message: str,
    ) -> None:
        """Test a successful inquiry returns the redacted message and answer."""
        result = await orchestrator.process("alice", pii_message)

        assert result.user_id == "alice"
        assert "john@example.com" not in result.redacted_message
        assert result.ai_response == f"answer ({len(result.redacted_message)} chars)"
        assert [item.type for item in result.redacted_items] == [
            PIIType.EMAIL,
            PIIType.CREDIT_CARD,
            PIIType.SSN,
        ]

    async def test_backend_only_sees_redacted_text(
        self,
        orchestrator: InquiryOrchestrator,
        scripted_backend: ScriptedBackend,
        pii_message: str,
    ) -> None:
        """Test raw PII never reaches the downstream call."""
        await orchestrator.process("alice", pii_message)

        (sent,) = scripted_backend.calls
        assert "john@example.com" not in sent
        assert "4111-1111-1111-1111" not in sent
        assert "123-45-6789" not in sent

    async def test_success_is_audited(
        self,
        orchestrator: InquiryOrchestrator,
        recorder: AuditRecorder,
        pii_message: str,
    ) -> None:
        """Test a successful inquiry writes one entry with the original encrypted."""
        result = await orchestrator.process("alice", pii_message)

        (entry,) = await recorder.list_for_user("alice")
        assert entry.success is True
        assert entry.ai_response == result.ai_response
        assert entry.redacted_message == result.redacted_message
        assert "john@example.com" not in entry.encrypted_original
        assert recorder.reveal_original(entry, "alice") == pii_message

    async def test_downstream_failure_is_audited(
        self,
        orchestrator: InquiryOrchestrator,
        scripted_backend: ScriptedBackend,
        recorder: AuditRecorder,
    ) -> None:
        """Test a failed call raises and still writes a failed entry."""
        scripted_backend.outcomes = [RuntimeError("model exploded")]

        with pytest.raises(DownstreamError):
            await orchestrator.process("alice", "hello")

        (entry,) = await recorder.list_for_user("alice")
        assert entry.success is False
        assert entry.ai_response is None

    async def test_open_breaker_is_audited(
        self,
        orchestrator: InquiryOrchestrator,
        invoker: ResilientInvoker,
        scripted_backend: ScriptedBackend,
        recorder: AuditRecorder,
    ) -> None:
        """Test rejected inquiries are recorded and never reach the backend."""
        for _ in range(invoker.breaker.config.failure_threshold):
            invoker.breaker.record_failure()

        with pytest.raises(ServiceUnavailableError):
            await orchestrator.process("alice", "hello")

        assert scripted_backend.calls == []
        (entry,) = await recorder.list_for_user("alice")
        assert entry.success is False

    async def test_audit_failure_does_not_mask_success(
        self, invoker: ResilientInvoker, cipher: AuditCipher
    ) -> None:
        """Test a store failure is logged but the inquiry still succeeds."""
        orchestrator = InquiryOrchestrator(
            invoker=invoker, recorder=AuditRecorder(cipher=cipher, store=FailingAuditStore())
        )

        with capture_logs() as logs:
            result = await orchestrator.process("alice", "hello")

        assert result.ai_response == "answer (5 chars)"
        failures = [log for log in logs if log["event"] == "audit_write_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "error"
        assert failures[0]["code"] == "PERSISTENCE_ERROR"
        assert failures[0]["inquiry_success"] is True

    async def test_audit_failure_keeps_downstream_error(
        self,
        invoker: ResilientInvoker,
        scripted_backend: ScriptedBackend,
        cipher: AuditCipher,
    ) -> None:
        """Test the downstream error is raised even if auditing it fails."""
        scripted_backend.outcomes = [RuntimeError("boom")]
        orchestrator = InquiryOrchestrator(
            invoker=invoker, recorder=AuditRecorder(cipher=cipher, store=FailingAuditStore())
        )

        with pytest.raises(DownstreamError):
            await orchestrator.process("alice", "hello")

    async def test_missing_key_logged(
        self,
        invoker: ResilientInvoker,
        key_provider: StaticKeyProvider,
        audit_store: InMemoryAuditStore,
    ) -> None:
        """Test an unavailable key skips the entry without failing the inquiry."""
        recorder = AuditRecorder(
            cipher=AuditCipher(key_provider, current_version=9), store=audit_store
        )
        orchestrator = InquiryOrchestrator(invoker=invoker, recorder=recorder)

        with capture_logs() as logs:
            await orchestrator.process("alice", "hello")

        assert await audit_store.query_all() == []
        assert any(
            log["event"] == "audit_write_failed" and log["code"] == "CRYPTO_KEY_UNAVAILABLE"
            for log in logs
        )

    async def test_sanitize_logged_without_pii(
        self, orchestrator: InquiryOrchestrator, pii_message: str
    ) -> None:
        """Test the sanitize log carries counts, not message text."""
        with capture_logs() as logs:
            await orchestrator.process("alice", pii_message)

        (log,) = [log for log in logs if log["event"] == "inquiry_sanitized"]
        assert log["redacted_items"] == {"EMAIL": 1, "CREDIT_CARD": 1, "SSN": 1}
        assert all("john@example.com" not in str(value) for value in log.values())

    async def test_unencodable_message_does_not_mask_success(
        self,
        orchestrator: InquiryOrchestrator,
        audit_store: InMemoryAuditStore,
    ) -> None:
        """Test a message the cipher cannot encode still gets its answer."""
        message = "hi \ud800 there"

        with capture_logs() as logs:
            result = await orchestrator.process("user-1", message)

        assert result.ai_response == f"answer ({len(message)} chars)"
        assert await audit_store.query_all() == []
        (failure,) = [log for log in logs if log["event"] == "audit_write_failed"]
        assert failure["code"] == "PERSISTENCE_ERROR"
        assert failure["inquiry_success"] is True
