"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inquiry_guard.core.exceptions import InquiryGuardError, ServiceUnavailableError

from .deps import lifespan
from .routes import api_router, health_router


def inquiry_guard_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map domain errors to ``{"code", "message"}`` responses."""
    if not isinstance(exc, InquiryGuardError):
        raise exc
    headers: dict[str, str] = {}
    if isinstance(exc, ServiceUnavailableError):
        invoker = getattr(request.app.state, "invoker", None)
        if invoker is not None:
            retry_after = int(invoker.breaker.config.reset_timeout_seconds)
            headers["Retry-After"] = str(max(retry_after, 1))
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="inquiry-guard",
        description="PII-safe secure inquiry gateway with encrypted audit trail",
        version="0.1.0",
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InquiryGuardError, inquiry_guard_error_handler)

    app.include_router(health_router)
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
