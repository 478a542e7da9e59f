"""Unit tests for the key version report job."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from inquiry_guard.adapters.audit import InMemoryAuditStore
from inquiry_guard.crypto import StaticKeyProvider
from inquiry_guard.jobs import key_report
from inquiry_guard.jobs.key_report import KeyVersionUsage, build_report
from tests.fixtures.domain_objects import MASTER_KEY_V1, make_audit_entry


class TestBuildReport:
    """Tests for build_report."""

    async def test_empty_store(self, audit_store: InMemoryAuditStore) -> None:
        """Test an empty store gives an empty report."""
        assert await build_report(audit_store, StaticKeyProvider({})) == []

    async def test_counts_and_resolvability(self, audit_store: InMemoryAuditStore) -> None:
        """Test each stored version is counted and checked against the provider."""
        for version in (2, 1, 1, 3):
            await audit_store.append(make_audit_entry(key_version=version))
        provider = StaticKeyProvider({1: MASTER_KEY_V1, 3: bytes(32)})

        report = await build_report(audit_store, provider)

        assert report == [
            KeyVersionUsage(version=1, entries=2, resolvable=True),
            KeyVersionUsage(version=2, entries=1, resolvable=False),
            KeyVersionUsage(version=3, entries=1, resolvable=True),
        ]


class TestMain:
    """Tests for the job entry point."""

    async def test_requires_database_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the job exits non-zero without a database."""
        monkeypatch.delenv("DATABASE_URL", raising=False)

        assert await key_report.main() == 1

    async def test_exit_code_reflects_report(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an unresolvable version fails the job and the pool is closed."""
        mock_pool = MagicMock()
        mock_pool.close = AsyncMock()
        monkeypatch.setenv("DATABASE_URL", "postgresql://db/audit")
        monkeypatch.setattr(key_report.asyncpg, "create_pool", AsyncMock(return_value=mock_pool))
        monkeypatch.setattr(
            key_report,
            "build_report",
            AsyncMock(return_value=[KeyVersionUsage(version=1, entries=4, resolvable=False)]),
        )

        assert await key_report.main() == 1
        mock_pool.close.assert_awaited_once()

    async def test_all_resolvable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the job succeeds when every version resolves."""
        mock_pool = MagicMock()
        mock_pool.close = AsyncMock()
        monkeypatch.setenv("DATABASE_URL", "postgresql://db/audit")
        monkeypatch.setattr(key_report.asyncpg, "create_pool", AsyncMock(return_value=mock_pool))
        monkeypatch.setattr(
            key_report,
            "build_report",
            AsyncMock(return_value=[KeyVersionUsage(version=1, entries=4, resolvable=True)]),
        )

        assert await key_report.main() == 0
