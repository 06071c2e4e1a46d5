"""
OTP API Application
===================
FastAPI application factory wiring the OTP service to HTTP.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from ..config import Settings
from ..errors import INTERNAL_ERROR_MESSAGE, OTPServiceError, RateLimitedError
from ..service import OTPService
from .limits import ClientRateLimits, prune_client_limits
from .middleware import RequestLoggingMiddleware, setup_cors
from .routes import router

logger = structlog.get_logger(__name__)


async def handle_service_error(request: Request, exc: OTPServiceError) -> JSONResponse:
    headers = exc.response_headers() if isinstance(exc, RateLimitedError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.as_response(), headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Invalid request body", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request body"},
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = "API endpoint not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": INTERNAL_ERROR_MESSAGE},
    )


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[OTPService] = None,
    client_limits: Optional[ClientRateLimits] = None,
) -> FastAPI:
    """
    Build the OTP API.

    Args:
        settings: Process configuration (read from the environment if omitted)
        service: Pre-built service, e.g. with a test transport. Built from
            `settings` inside the lifespan if omitted.
        client_limits: Per-client limiters, e.g. with an injected clock

    Returns:
        FastAPI application
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        otp_service = service or OTPService(
            config=settings.otp,
            delivery_config=settings.delivery,
        )
        app.state.service = otp_service
        app.state.started_at = time.monotonic()
        await otp_service.start()
        pruner = asyncio.get_running_loop().create_task(
            prune_client_limits(app.state.client_limits, settings.otp.sweep_interval_seconds),
            name="client-limit-pruner",
        )
        try:
            yield
        finally:
            pruner.cancel()
            try:
                await pruner
            except asyncio.CancelledError:
                pass
            await otp_service.stop()

    app = FastAPI(title="SMSLY OTP", lifespan=lifespan)
    app.state.settings = settings
    app.state.client_limits = client_limits or ClientRateLimits(settings.api)

    app.add_exception_handler(OTPServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    setup_cors(app, settings.api.cors_origins)
    app.add_middleware(RequestLoggingMiddleware, trusted_proxies=settings.api.trusted_proxies)

    app.include_router(router)
    return app
