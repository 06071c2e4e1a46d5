"""
OTP Routes
==========
HTTP endpoints for requesting and verifying OTPs.
"""

import time
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import structlog

from .. import __version__
from ..errors import INTERNAL_ERROR_MESSAGE, OTPServiceError
from ..service import OTPService
from .limits import limit_send, limit_verify
from .schemas import ErrorResponse, HealthResponse, QueueHealth, SendOTPRequest, VerifyOTPRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_service(request: Request) -> OTPService:
    return request.app.state.service


def internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": INTERNAL_ERROR_MESSAGE},
    )


@router.post("/send-otp", dependencies=[Depends(limit_send)], responses=ERROR_RESPONSES)
async def send_otp(
    payload: Optional[SendOTPRequest] = None,
    service: OTPService = Depends(get_service),
):
    """Issue an OTP for a mobile number and queue its delivery."""
    payload = payload or SendOTPRequest()
    try:
        result = await service.request_otp(payload.phone_number)
    except OTPServiceError:
        raise
    except Exception as e:
        logger.error("Error sending OTP", error=str(e), exc_info=True)
        return internal_error()
    return result.as_response()


@router.post("/verify-otp", dependencies=[Depends(limit_verify)], responses=ERROR_RESPONSES)
async def verify_otp(
    payload: Optional[VerifyOTPRequest] = None,
    service: OTPService = Depends(get_service),
):
    """Verify a submitted OTP."""
    payload = payload or VerifyOTPRequest()
    try:
        result = service.verify_otp(payload.phone_number, payload.code)
    except OTPServiceError:
        raise
    except Exception as e:
        logger.error("Error verifying OTP", error=str(e), exc_info=True)
        return internal_error()

    if result.success:
        return result.as_response()
    return JSONResponse(status_code=400, content=result.as_response())


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, service: OTPService = Depends(get_service)) -> HealthResponse:
    """Liveness check with delivery queue status."""
    snapshot = service.queue_snapshot()
    return HealthResponse(
        status="healthy",
        service=request.app.state.settings.api.service_name,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
        queue=QueueHealth(pending=snapshot["pending"], inFlight=snapshot["inFlight"]),
    )
