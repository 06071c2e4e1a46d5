"""
OTP Service Errors
==================
Exception classes for OTP issuance, verification and delivery.

Every error carries the message that is safe to show to the end user.
Internal details go to the logs, never into `message`.
"""

from typing import Dict, Optional


INTERNAL_ERROR_MESSAGE = "Internal server error"


class OTPServiceError(Exception):
    """Base class for recoverable, user-facing OTP errors."""

    status_code: int = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def as_response(self) -> dict:
        return {"success": False, "message": self.message}


class InvalidInputError(OTPServiceError):
    """Malformed phone number or code. No state was changed."""

    status_code = 400


class RateLimitedError(OTPServiceError):
    """Too many requests for a key within the sliding window."""

    status_code = 429

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.headers = headers

    def response_headers(self) -> Optional[Dict[str, str]]:
        if self.headers:
            return self.headers
        if self.retry_after:
            return {"Retry-After": str(self.retry_after)}
        return None


class DeliveryFailed(Exception):
    """Raised on a delivery job's future when the transport could not send the SMS."""

    def __init__(self, message: str, phone_number: Optional[str] = None, job_id: Optional[str] = None):
        super().__init__(message)
        self.phone_number = phone_number
        self.job_id = job_id


class QueueClosedError(RuntimeError):
    """Raised when enqueueing on a delivery queue that has been stopped."""
    pass
