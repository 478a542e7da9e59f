"""API route modules."""

from fastapi import APIRouter

from inquiry_guard.entrypoints.api.routes.audit import router as audit_router
from inquiry_guard.entrypoints.api.routes.circuit_breaker import router as circuit_breaker_router
from inquiry_guard.entrypoints.api.routes.health import router as health_router
from inquiry_guard.entrypoints.api.routes.inquiry import router as inquiry_router

# Create main API router
api_router = APIRouter()

api_router.include_router(inquiry_router)
api_router.include_router(audit_router)
api_router.include_router(circuit_breaker_router)

__all__ = ["api_router", "health_router"]
