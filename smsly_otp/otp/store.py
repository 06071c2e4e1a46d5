"""
OTP Store
=========
In-memory OTP storage with TTL and attempt-limited verification.
"""

import time
from typing import Callable, Dict, Optional, Tuple
import structlog

from ..validation import mask_phone
from .generator import CodeGenerator, codes_match
from .models import OTPRecord, VerifyResult

logger = structlog.get_logger(__name__)


class OTPStore:
    """
    Holds at most one live OTP record per phone number.

    Expiry is checked lazily on every read; `sweep_expired` only reclaims
    memory for numbers that are never touched again.
    Single process only. Use a shared store for multi-process deployments.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._records: Dict[str, OTPRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, phone_number: str) -> bool:
        return phone_number in self._records

    def get(self, phone_number: str) -> Optional[OTPRecord]:
        """Return the live record for a number, dropping it if expired."""
        record = self._records.get(phone_number)
        if record is None:
            return None
        if record.is_expired(self._clock()):
            del self._records[phone_number]
            return None
        return record

    def get_or_create(
        self,
        phone_number: str,
        generator: CodeGenerator,
        ttl_seconds: float,
    ) -> Tuple[OTPRecord, bool]:
        """
        Get the live OTP for a number or issue a new one.

        Args:
            phone_number: Validated phone number
            generator: Callable returning a fresh numeric code
            ttl_seconds: Lifetime of a newly issued code

        Returns:
            Tuple of (record, is_new)
        """
        existing = self.get(phone_number)
        if existing is not None:
            return existing, False

        now = self._clock()
        record = OTPRecord(
            phone_number=phone_number,
            code=generator(),
            created_at=now,
            expires_at=now + ttl_seconds,
        )
        self._records[phone_number] = record

        logger.info(
            "OTP issued",
            phone=mask_phone(phone_number),
            expires_in=ttl_seconds,
        )
        return record, True

    def verify(self, phone_number: str, supplied_code: str, max_attempts: int) -> VerifyResult:
        """
        Check a supplied code and update attempt bookkeeping.

        Args:
            phone_number: Validated phone number
            supplied_code: Code entered by the user
            max_attempts: Attempts allowed per issued code

        Returns:
            VerifyResult describing the outcome
        """
        record = self._records.get(phone_number)
        if record is None:
            return VerifyResult.NOT_FOUND

        if record.is_expired(self._clock()):
            del self._records[phone_number]
            logger.warning("OTP expired", phone=mask_phone(phone_number))
            return VerifyResult.EXPIRED

        record.attempts += 1

        if codes_match(supplied_code, record.code):
            del self._records[phone_number]
            logger.info(
                "OTP verified successfully",
                phone=mask_phone(phone_number),
                attempts=record.attempts,
            )
            return VerifyResult.SUCCESS

        if record.attempts >= max_attempts:
            del self._records[phone_number]
            logger.warning(
                "OTP attempts exhausted",
                phone=mask_phone(phone_number),
                attempts=record.attempts,
            )
            return VerifyResult.TOO_MANY_ATTEMPTS

        logger.warning(
            "Invalid OTP attempt",
            phone=mask_phone(phone_number),
            remaining=max_attempts - record.attempts,
        )
        return VerifyResult.INVALID

    def sweep_expired(self, now: Optional[float] = None) -> int:
        """
        Remove all records that expired before `now`.

        Returns:
            Number of records removed
        """
        if now is None:
            now = self._clock()
        expired = [
            phone for phone, record in self._records.items()
            if record.expires_at < now
        ]
        for phone in expired:
            del self._records[phone]

        if expired:
            logger.debug("Expired OTPs swept", count=len(expired))
        return len(expired)

    def clear(self) -> None:
        self._records.clear()
