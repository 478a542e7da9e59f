"""Health check route with downstream service status."""

from datetime import UTC, datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from inquiry_guard.core.domain_types import BreakerState
from inquiry_guard.entrypoints.api.deps import get_invoker, get_uptime
from inquiry_guard.safety.circuit_breaker import ResilientInvoker

router = APIRouter(tags=["health"])

InvokerDep = Annotated[ResilientInvoker, Depends(get_invoker)]
UptimeDep = Annotated[float, Depends(get_uptime)]


class CircuitBreakerStatusResponse(BaseModel):
    """Circuit breaker status for monitoring."""

    model_config = ConfigDict(populate_by_name=True)

    state: BreakerState
    failures: int
    last_failure: str | None = Field(alias="lastFailure")
    last_success: str | None = Field(alias="lastSuccess")


class MockAiServiceStatus(BaseModel):
    """Status of the downstream AI service."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["available", "unavailable"]
    circuit_breaker: CircuitBreakerStatusResponse = Field(alias="circuitBreaker")


class ServicesStatus(BaseModel):
    """Status of every downstream service."""

    model_config = ConfigDict(populate_by_name=True)

    mock_ai: MockAiServiceStatus = Field(alias="mockAi")


class HealthStatus(BaseModel):
    """Health status with service info."""

    status: Literal["healthy", "degraded"]
    timestamp: str
    uptime: float
    services: ServicesStatus


def breaker_status_response(invoker: ResilientInvoker) -> CircuitBreakerStatusResponse:
    """Render the invoker's breaker status for the API."""
    status = invoker.get_status()
    return CircuitBreakerStatusResponse(
        state=status.state,
        failures=status.failures,
        last_failure=status.last_failure,
        last_success=status.last_success,
    )


@router.get("/health", response_model=HealthStatus)
async def health_check(invoker: InvokerDep, uptime: UptimeDep) -> HealthStatus:
    """Health check endpoint.

    The service is degraded while the circuit breaker is open.
    """
    breaker = breaker_status_response(invoker)
    is_open = breaker.state is BreakerState.OPEN

    return HealthStatus(
        status="degraded" if is_open else "healthy",
        timestamp=datetime.now(UTC).isoformat(),
        uptime=uptime,
        services=ServicesStatus(
            mock_ai=MockAiServiceStatus(
                status="unavailable" if is_open else "available",
                circuit_breaker=breaker,
            )
        ),
    )
