"""Unit tests for settings, component wiring and lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from structlog.testing import capture_logs

from inquiry_guard.adapters.audit import InMemoryAuditStore, PostgresAuditStore
from inquiry_guard.core.exceptions import CryptoKeyUnavailableError
from inquiry_guard.entrypoints.api import deps
from inquiry_guard.entrypoints.api.deps import Settings, build_components, lifespan
from tests.fixtures.domain_objects import MASTER_KEY_V1


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Test defaults with an empty environment."""
        settings = Settings(environ={})

        assert settings.app_env == "development"
        assert settings.is_production is False
        assert settings.database_url is None
        assert settings.audit_key_version == 1
        assert settings.breaker_failure_threshold == 3
        assert settings.breaker_reset_timeout_seconds == 30.0
        assert settings.downstream_timeout_seconds is None
        assert settings.mock_ai_delay_seconds == 2.0
        assert settings.mock_ai_failure_rate == 0.5

    def test_overrides(self) -> None:
        """Test values are read from the environment."""
        settings = Settings(
            environ={
                "APP_ENV": "production",
                "DATABASE_URL": "postgresql://localhost/audit",
                "AUDIT_KEY_VERSION": "2",
                "BREAKER_FAILURE_THRESHOLD": "5",
                "BREAKER_RESET_TIMEOUT_SECONDS": "10.5",
                "DOWNSTREAM_TIMEOUT_SECONDS": "4",
                "MOCK_AI_DELAY_SECONDS": "0",
                "MOCK_AI_FAILURE_RATE": "0.1",
            }
        )

        assert settings.is_production is True
        assert settings.database_url == "postgresql://localhost/audit"
        assert settings.audit_key_version == 2
        assert settings.breaker_failure_threshold == 5
        assert settings.breaker_reset_timeout_seconds == 10.5
        assert settings.downstream_timeout_seconds == 4.0
        assert settings.mock_ai_delay_seconds == 0.0
        assert settings.mock_ai_failure_rate == 0.1

    def test_invalid_app_env(self) -> None:
        """Test unknown environments are rejected."""
        with pytest.raises(ValueError, match="APP_ENV"):
            Settings(environ={"APP_ENV": "staging"})

    @pytest.mark.parametrize("value", ["0", "-1", "three"])
    def test_invalid_threshold(self, value: str) -> None:
        """Test the threshold must be a positive integer."""
        with pytest.raises(ValueError, match="BREAKER_FAILURE_THRESHOLD"):
            Settings(environ={"BREAKER_FAILURE_THRESHOLD": value})

    def test_invalid_float(self) -> None:
        """Test non-numeric durations are rejected."""
        with pytest.raises(ValueError, match="MOCK_AI_DELAY_SECONDS"):
            Settings(environ={"MOCK_AI_DELAY_SECONDS": "soon"})


class TestBuildComponents:
    """Tests for build_components."""

    def test_development_uses_dev_key_with_warning(self) -> None:
        """Test a missing key outside production falls back with a warning."""
        with capture_logs() as logs:
            components = build_components(Settings(environ={}), InMemoryAuditStore())

        assert components.recorder.cipher.current_version == 1
        assert any(log["event"] == "security_warning" for log in logs)

    def test_production_requires_key(self) -> None:
        """Test production refuses to start without a master key."""
        with pytest.raises(CryptoKeyUnavailableError, match="AUDIT_MASTER_KEY"):
            build_components(Settings(environ={"APP_ENV": "production"}), InMemoryAuditStore())

    def test_production_with_key(self) -> None:
        """Test a configured key starts cleanly without a warning."""
        settings = Settings(
            environ={"APP_ENV": "production", "AUDIT_MASTER_KEY": MASTER_KEY_V1.hex()}
        )

        with capture_logs() as logs:
            build_components(settings, InMemoryAuditStore())

        assert not any(log["event"] == "security_warning" for log in logs)

    def test_breaker_configured_from_settings(self) -> None:
        """Test breaker limits come from settings."""
        settings = Settings(
            environ={
                "BREAKER_FAILURE_THRESHOLD": "7",
                "BREAKER_RESET_TIMEOUT_SECONDS": "12",
                "DOWNSTREAM_TIMEOUT_SECONDS": "3",
            }
        )

        components = build_components(settings, InMemoryAuditStore())

        config = components.invoker.breaker.config
        assert config.failure_threshold == 7
        assert config.reset_timeout_seconds == 12.0
        assert config.call_timeout_seconds == 3.0

    def test_shared_components(self) -> None:
        """Test the orchestrator uses the same invoker and recorder."""
        store = InMemoryAuditStore()

        components = build_components(Settings(environ={}), store)

        assert components.orchestrator.invoker is components.invoker
        assert components.orchestrator.recorder is components.recorder
        assert components.recorder.store is store


class TestLifespan:
    """Tests for the application lifespan."""

    async def test_in_memory_store(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the in-memory store is used without DATABASE_URL."""
        monkeypatch.setattr(deps, "settings", Settings(environ={"APP_ENV": "test"}))
        app = FastAPI()

        async with lifespan(app):
            assert isinstance(app.state.recorder.store, InMemoryAuditStore)
            assert app.state.orchestrator.invoker is app.state.invoker

    async def test_postgres_store(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the schema is ensured and the pool closed with DATABASE_URL."""
        mock_conn = AsyncMock()
        mock_pool = MagicMock()

        @asynccontextmanager
        async def mock_acquire():
            yield mock_conn

        mock_pool.acquire = mock_acquire
        mock_pool.close = AsyncMock()
        create_pool = AsyncMock(return_value=mock_pool)
        monkeypatch.setattr(deps.asyncpg, "create_pool", create_pool)
        monkeypatch.setattr(
            deps,
            "settings",
            Settings(environ={"APP_ENV": "test", "DATABASE_URL": "postgresql://db/audit"}),
        )
        app = FastAPI()

        async with lifespan(app):
            assert isinstance(app.state.recorder.store, PostgresAuditStore)
            assert mock_conn.execute.await_count > 0

        create_pool.assert_awaited_once()
        mock_pool.close.assert_awaited_once()

    async def test_pool_closed_when_startup_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the pool is released if wiring fails."""
        mock_pool = MagicMock()

        @asynccontextmanager
        async def mock_acquire():
            yield AsyncMock()

        mock_pool.acquire = mock_acquire
        mock_pool.close = AsyncMock()
        monkeypatch.setattr(deps.asyncpg, "create_pool", AsyncMock(return_value=mock_pool))
        monkeypatch.setattr(
            deps,
            "settings",
            Settings(environ={"APP_ENV": "production", "DATABASE_URL": "postgresql://db/a"}),
        )

        with pytest.raises(CryptoKeyUnavailableError):
            async with lifespan(FastAPI()):
                pass

        mock_pool.close.assert_awaited_once()
