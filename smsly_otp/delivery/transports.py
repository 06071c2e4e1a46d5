"""
Delivery Transports
===================
Base class for SMS delivery backends and the simulated demo transport.
"""

import asyncio
import random
import time
from abc import ABC, abstractmethod
from typing import Optional
import structlog

from ..validation import mask_phone
from .models import DeliveryResult

logger = structlog.get_logger(__name__)


class BaseDeliveryTransport(ABC):
    """
    Abstract base class for SMS delivery backends.

    The delivery queue calls `deliver` for one job at a time.
    """

    name: str = "base"

    def __init__(self):
        self._is_initialized = False

    async def initialize(self) -> None:
        """Initialize the transport (e.g., create HTTP clients)."""
        self._is_initialized = True
        logger.info("Delivery transport initialized", transport=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        self._is_initialized = False
        logger.info("Delivery transport closed", transport=self.name)

    @abstractmethod
    async def deliver(self, phone_number: str, code: str) -> DeliveryResult:
        """
        Send an OTP code by SMS.

        Args:
            phone_number: Validated local phone number
            code: OTP code to send

        Returns:
            DeliveryResult with the transport outcome
        """
        pass

    async def health_check(self) -> bool:
        return self._is_initialized


class SimulatedTransport(BaseDeliveryTransport):
    """
    Demo transport: waits a random latency, then succeeds with a fixed probability.
    """

    name = "simulated"

    def __init__(
        self,
        min_latency: float = 2.0,
        max_latency: float = 3.0,
        success_probability: float = 0.95,
        rng: Optional[random.Random] = None,
    ):
        super().__init__()
        if min_latency < 0 or max_latency < min_latency:
            raise ValueError("Latency range must satisfy 0 <= min_latency <= max_latency")
        if not 0.0 <= success_probability <= 1.0:
            raise ValueError("success_probability must be between 0 and 1")
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.success_probability = success_probability
        self._rng = rng or random.Random()

    async def deliver(self, phone_number: str, code: str) -> DeliveryResult:
        start = time.monotonic()
        await asyncio.sleep(self._rng.uniform(self.min_latency, self.max_latency))
        latency_ms = round((time.monotonic() - start) * 1000, 2)

        if self._rng.random() < self.success_probability:
            logger.info("Simulated SMS sent", phone=mask_phone(phone_number), latency_ms=latency_ms)
            return DeliveryResult(
                success=True,
                provider_message_id=f"sim-{self._rng.getrandbits(48):012x}",
                latency_ms=latency_ms,
            )

        logger.warning("Simulated SMS failed", phone=mask_phone(phone_number), latency_ms=latency_ms)
        return DeliveryResult(
            success=False,
            error_code="SIMULATED_FAILURE",
            error_message="SMS delivery failed",
            latency_ms=latency_ms,
        )
