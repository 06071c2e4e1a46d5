"""
OTP Service
===========
Issues OTPs, queues their delivery and verifies submitted codes.

Per phone number: NoOTP -> Pending -> Verified | Expired | Locked.
Verified, Expired and Locked all remove the record, so the next request
starts again from NoOTP.
"""

import asyncio
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Optional
import structlog

from .config import DeliveryConfig, OTPConfig
from .delivery import DeliveryJob, DeliveryQueue, create_transport
from .errors import InvalidInputError, RateLimitedError
from .otp import CodeGenerator, OTPStore, VerifyResult, numeric_generator
from .rate_limit import SlidingWindowLimiter
from .validation import mask_phone, validate_mobile_number, validate_otp_code

logger = structlog.get_logger(__name__)


MOBILE_NUMBER_REQUIRED = "Mobile number is required"
INVALID_MOBILE_NUMBER = "Please enter a valid 10-digit mobile number"
TOO_MANY_REQUESTS = "Too many requests from this number. Please wait a minute before trying again."
VERIFY_FIELDS_REQUIRED = "Mobile number and OTP are required"
INVALID_MOBILE_FORMAT = "Invalid mobile number format"

VERIFY_MESSAGES: Dict[VerifyResult, str] = {
    VerifyResult.SUCCESS: "Mobile number verified successfully",
    VerifyResult.NOT_FOUND: "No OTP found for this mobile number",
    VerifyResult.EXPIRED: "OTP has expired. Please request a new one",
    VerifyResult.TOO_MANY_ATTEMPTS: "Too many invalid attempts. Please request a new OTP",
    VerifyResult.INVALID: "Invalid OTP, please try again",
}

# Rough per-job delivery time used for the wait estimate
SECONDS_PER_QUEUED_JOB = 2


@dataclass
class OTPRequestResult:
    """Outcome of a successful OTP request."""
    message: str
    queue_position: int
    estimated_wait_seconds: int
    expires_in_seconds: int
    is_new: bool
    code: Optional[str] = None  # development mode only
    job: Optional[DeliveryJob] = field(default=None, repr=False)

    @property
    def success(self) -> bool:
        return True

    def as_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": True,
            "message": self.message,
            "queuePosition": self.queue_position,
            "estimatedWaitSeconds": self.estimated_wait_seconds,
            "expiresInSeconds": self.expires_in_seconds,
        }
        if self.code is not None:
            body["code"] = self.code
        return body


@dataclass
class OTPVerifyResult:
    """Outcome of a verification attempt with well-formed input."""
    result: VerifyResult
    message: str

    @property
    def success(self) -> bool:
        return self.result == VerifyResult.SUCCESS

    def as_response(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message}


class OTPService:
    """
    Owns the OTP store, the per-number rate limiter and the delivery queue.

    Build one per process and pass it where needed. `start()` must run on
    the event loop that will serve requests.
    """

    def __init__(
        self,
        config: Optional[OTPConfig] = None,
        delivery_config: Optional[DeliveryConfig] = None,
        store: Optional[OTPStore] = None,
        limiter: Optional[SlidingWindowLimiter] = None,
        queue: Optional[DeliveryQueue] = None,
        generator: Optional[CodeGenerator] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or OTPConfig()
        self._clock = clock
        self.store = store or OTPStore(clock=clock)
        self.limiter = limiter or SlidingWindowLimiter(
            rate=self.config.rate_max_requests,
            window=self.config.rate_window_seconds,
            clock=clock,
        )
        if queue is None:
            delivery_config = delivery_config or DeliveryConfig()
            queue = DeliveryQueue(
                create_transport(delivery_config, ttl_seconds=self.config.ttl_seconds),
                spacing_seconds=delivery_config.spacing_seconds,
            )
        self.queue = queue
        self.generator = generator or numeric_generator(self.config.length)
        self._maintenance: Optional[asyncio.Task] = None

        if self.config.dev_mode:
            logger.warning("OTP development mode enabled: codes are returned in responses")

    async def start(self) -> None:
        """Initialize the transport and start the delivery worker and maintenance task."""
        await self.queue.transport.initialize()
        self.queue.start()
        if self._maintenance is None or self._maintenance.done():
            self._maintenance = asyncio.get_running_loop().create_task(
                self._run_maintenance(), name="otp-maintenance"
            )
        logger.info(
            "OTP service started",
            ttl_seconds=self.config.ttl_seconds,
            max_attempts=self.config.max_attempts,
            transport=self.queue.transport.name,
        )

    async def stop(self, drain: bool = True) -> None:
        """Stop maintenance, stop the delivery worker and close the transport."""
        if self._maintenance is not None:
            self._maintenance.cancel()
            try:
                await self._maintenance
            except asyncio.CancelledError:
                pass
            self._maintenance = None
        await self.queue.stop(drain=drain)
        await self.queue.transport.close()
        logger.info("OTP service stopped")

    async def __aenter__(self) -> "OTPService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def request_otp(self, phone_number: Any) -> OTPRequestResult:
        """
        Issue (or re-send) an OTP and queue it for delivery.

        A number with a live OTP gets the same code again; attempts are
        not reset.

        Raises:
            InvalidInputError: Missing or malformed phone number
            RateLimitedError: Too many requests for this number
        """
        if not phone_number:
            raise InvalidInputError(MOBILE_NUMBER_REQUIRED)
        if not validate_mobile_number(phone_number):
            raise InvalidInputError(INVALID_MOBILE_NUMBER)

        allowed = self.limiter.allow(
            phone_number,
            self.config.rate_window_seconds * 1000,
            self.config.rate_max_requests,
        )
        if not allowed:
            logger.warning("OTP request rate limited", phone=mask_phone(phone_number))
            raise RateLimitedError(TOO_MANY_REQUESTS, retry_after=self.config.rate_window_seconds)

        record, is_new = self.store.get_or_create(
            phone_number, self.generator, self.config.ttl_seconds
        )

        job = self.queue.enqueue_job(phone_number, record.code)
        job.future.add_done_callback(partial(self._on_delivery_done, job))
        position = self.queue.get_queue_position(phone_number)

        if is_new:
            message = f"OTP queued for delivery. Position: {position}"
        else:
            message = f"OTP already sent. Resend queued at position {position}"

        log_fields = {"phone": mask_phone(phone_number), "position": position, "is_new": is_new}
        if self.config.dev_mode:
            log_fields["code"] = record.code
        logger.info("OTP queued", **log_fields)

        return OTPRequestResult(
            message=message,
            queue_position=position,
            estimated_wait_seconds=position * SECONDS_PER_QUEUED_JOB,
            expires_in_seconds=record.expires_in(self._clock()),
            is_new=is_new,
            code=record.code if self.config.dev_mode else None,
            job=job,
        )

    def verify_otp(self, phone_number: Any, code: Any) -> OTPVerifyResult:
        """
        Verify a submitted code.

        Raises:
            InvalidInputError: Missing or malformed phone number or code
        """
        if not phone_number or not code:
            raise InvalidInputError(VERIFY_FIELDS_REQUIRED)
        if not validate_mobile_number(phone_number):
            raise InvalidInputError(INVALID_MOBILE_FORMAT)
        if not validate_otp_code(code, self.config.length):
            raise InvalidInputError(f"OTP must be {self.config.length} digits")

        result = self.store.verify(phone_number, code, self.config.max_attempts)
        return OTPVerifyResult(result=result, message=VERIFY_MESSAGES[result])

    def run_maintenance(self) -> Dict[str, int]:
        """Sweep expired OTPs and idle rate windows."""
        swept = self.store.sweep_expired(self._clock())
        pruned = self.limiter.prune()
        if swept or pruned:
            logger.info("OTP maintenance", expired_removed=swept, rate_windows_removed=pruned)
        return {"expired_removed": swept, "rate_windows_removed": pruned}

    async def _run_maintenance(self) -> None:
        while True:
            await asyncio.sleep(self.config.sweep_interval_seconds)
            try:
                self.run_maintenance()
            except Exception as e:
                logger.error("OTP maintenance failed", error=str(e), exc_info=True)

    def _on_delivery_done(self, job: DeliveryJob, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(
                "OTP delivery failed",
                job_id=job.id,
                phone=mask_phone(job.phone_number),
                error=str(error),
            )
            return
        logger.info(
            "OTP delivered",
            job_id=job.id,
            phone=mask_phone(job.phone_number),
            provider_message_id=future.result().provider_message_id,
        )

    def queue_snapshot(self) -> Dict[str, Any]:
        return {
            "pending": len(self.queue),
            "inFlight": self.queue.in_flight is not None,
            "activeOtps": len(self.store),
            **self.queue.stats.as_dict(),
        }
