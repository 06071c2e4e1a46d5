"""
OTP Models
==========
Data models and enums for OTP storage and verification.
"""

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class VerifyResult(str, Enum):
    """Outcome of checking a supplied code against the stored record."""
    SUCCESS = "success"
    INVALID = "invalid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"
    TOO_MANY_ATTEMPTS = "too_many_attempts"


@dataclass
class OTPRecord:
    """An issued OTP for one phone number."""
    phone_number: str
    code: str
    created_at: float
    expires_at: float
    attempts: int = 0

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return now >= self.expires_at

    def expires_in(self, now: Optional[float] = None) -> int:
        """Whole seconds until expiry, rounded up."""
        if now is None:
            now = time.time()
        remaining = self.expires_at - now
        if remaining <= 0:
            return 0
        return math.ceil(remaining)
