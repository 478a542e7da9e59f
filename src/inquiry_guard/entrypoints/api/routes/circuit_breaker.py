"""Circuit breaker administration routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from inquiry_guard.entrypoints.api.deps import get_invoker
from inquiry_guard.entrypoints.api.routes.health import (
    CircuitBreakerStatusResponse,
    breaker_status_response,
)
from inquiry_guard.safety.circuit_breaker import ResilientInvoker

router = APIRouter(prefix="/circuit-breaker", tags=["circuit-breaker"])

InvokerDep = Annotated[ResilientInvoker, Depends(get_invoker)]


@router.get("", response_model=CircuitBreakerStatusResponse)
async def get_circuit_breaker(invoker: InvokerDep) -> CircuitBreakerStatusResponse:
    """Return the current circuit breaker status."""
    return breaker_status_response(invoker)


@router.post("/reset", response_model=CircuitBreakerStatusResponse)
async def reset_circuit_breaker(invoker: InvokerDep) -> CircuitBreakerStatusResponse:
    """Reset the circuit breaker to closed and return its status."""
    invoker.reset()
    return breaker_status_response(invoker)
