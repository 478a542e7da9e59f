"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
import time
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import asyncpg
import structlog
from fastapi import Request

from inquiry_guard.adapters.audit import InMemoryAuditStore, PostgresAuditStore
from inquiry_guard.adapters.llm import MockAIBackend
from inquiry_guard.core.orchestrator import InquiryOrchestrator
from inquiry_guard.crypto import AuditCipher, EnvironmentKeyProvider
from inquiry_guard.safety.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    ResilientInvoker,
)
from inquiry_guard.services.audit import AuditRecorder

if TYPE_CHECKING:
    from fastapi import FastAPI

    from inquiry_guard.core.interfaces import AuditStore

logger = structlog.get_logger()

APP_ENVS = ("development", "test", "production")


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}")
    return value


def _optional_float(environ: Mapping[str, str], name: str) -> float | None:
    raw = environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {raw!r}")
    return value


def _non_negative_float(environ: Mapping[str, str], name: str, default: float) -> float:
    value = _optional_float(environ, name)
    return default if value is None else value


class Settings:
    """Application settings loaded from environment."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        """Load settings from environment variables.

        Args:
            environ: Variables to read. Defaults to ``os.environ``.

        Raises:
            ValueError: If a variable has an invalid value.
        """
        self.environ: Mapping[str, str] = environ if environ is not None else os.environ
        env = self.environ

        self.app_env = env.get("APP_ENV", "development")
        if self.app_env not in APP_ENVS:
            raise ValueError(
                f"APP_ENV must be one of {', '.join(APP_ENVS)}, got {self.app_env!r}"
            )

        # Unset: audit entries are kept in memory only
        self.database_url = env.get("DATABASE_URL") or None

        self.audit_key_version = _positive_int(env, "AUDIT_KEY_VERSION", 1)

        # Circuit breaker settings
        self.breaker_failure_threshold = _positive_int(env, "BREAKER_FAILURE_THRESHOLD", 3)
        self.breaker_reset_timeout_seconds = _non_negative_float(
            env, "BREAKER_RESET_TIMEOUT_SECONDS", 30.0
        )
        self.downstream_timeout_seconds = _optional_float(env, "DOWNSTREAM_TIMEOUT_SECONDS")

        # Mock AI backend
        self.mock_ai_delay_seconds = _non_negative_float(env, "MOCK_AI_DELAY_SECONDS", 2.0)
        self.mock_ai_failure_rate = _non_negative_float(env, "MOCK_AI_FAILURE_RATE", 0.5)

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production mode."""
        return self.app_env == "production"


settings = Settings()


@dataclass
class Components:
    """Everything the routes need, built once per application."""

    invoker: ResilientInvoker
    recorder: AuditRecorder
    orchestrator: InquiryOrchestrator


def build_components(app_settings: Settings, store: AuditStore) -> Components:
    """Wire the pipeline components from settings.

    Args:
        app_settings: Loaded settings.
        store: Audit store to record into.

    Returns:
        The wired components.

    Raises:
        CryptoKeyUnavailableError: In production, if the current key version
            is not configured.
    """
    key_provider = EnvironmentKeyProvider(
        environ=app_settings.environ,
        allow_dev_fallback=not app_settings.is_production,
    )

    # Fail closed at startup rather than on the first audit write
    key_provider.get_master_key(app_settings.audit_key_version)

    if key_provider.uses_dev_fallback(app_settings.audit_key_version):
        logger.warning(
            "security_warning",
            detail="Using auto-generated encryption key in non-production mode",
            key_version=app_settings.audit_key_version,
        )

    breaker = CircuitBreaker(
        CircuitBreakerConfig(
            failure_threshold=app_settings.breaker_failure_threshold,
            reset_timeout_seconds=app_settings.breaker_reset_timeout_seconds,
            call_timeout_seconds=app_settings.downstream_timeout_seconds,
        )
    )
    backend = MockAIBackend(
        delay_seconds=app_settings.mock_ai_delay_seconds,
        failure_rate=app_settings.mock_ai_failure_rate,
    )
    invoker = ResilientInvoker(backend=backend, breaker=breaker)

    cipher = AuditCipher(key_provider, current_version=app_settings.audit_key_version)
    recorder = AuditRecorder(cipher=cipher, store=store)

    return Components(
        invoker=invoker,
        recorder=recorder,
        orchestrator=InquiryOrchestrator(invoker=invoker, recorder=recorder),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Audit store setup (PostgreSQL pool or in-memory)
    - Key provider validation
    - Circuit breaker, invoker, recorder and orchestrator wiring
    """
    pool: Any = None
    store: AuditStore
    if settings.database_url:
        pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=2,
            max_size=10,
            command_timeout=60,
        )
        postgres_store = PostgresAuditStore(pool)
        await postgres_store.ensure_schema()
        store = postgres_store
        logger.info("audit_store_connected", dsn=settings.database_url.split("@")[-1])
    else:
        store = InMemoryAuditStore()
        logger.warning("audit_store_in_memory", detail="DATABASE_URL not set")

    try:
        components = build_components(settings, store)
    except Exception:
        if pool is not None:
            await pool.close()
        raise

    app.state.settings = settings
    app.state.invoker = components.invoker
    app.state.recorder = components.recorder
    app.state.orchestrator = components.orchestrator
    app.state.started_at = time.monotonic()

    logger.info("inquiry_guard_started", app_env=settings.app_env)

    yield

    if pool is not None:
        await pool.close()
        logger.info("audit_store_disconnected")


def get_orchestrator(request: Request) -> InquiryOrchestrator:
    """Get the orchestrator from app state.

    Args:
        request: The current request.

    Returns:
        The configured InquiryOrchestrator.
    """
    orchestrator: InquiryOrchestrator = request.app.state.orchestrator
    return orchestrator


def get_invoker(request: Request) -> ResilientInvoker:
    """Get the breaker-protected invoker from app state."""
    invoker: ResilientInvoker = request.app.state.invoker
    return invoker


def get_recorder(request: Request) -> AuditRecorder:
    """Get the audit recorder from app state."""
    recorder: AuditRecorder = request.app.state.recorder
    return recorder


def get_uptime(request: Request) -> float:
    """Seconds since the application started."""
    started_at: float = getattr(request.app.state, "started_at", time.monotonic())
    return time.monotonic() - started_at
