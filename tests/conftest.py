"""
Shared fixtures for smsly-otp tests.
"""

import asyncio

import pytest

from smsly_otp.delivery import BaseDeliveryTransport, DeliveryResult


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport(BaseDeliveryTransport):
    """
    Transport that records start/end of every delivery.

    `outcomes` is consumed in order: True/False for success/failure, or an
    exception instance to raise. Missing outcomes default to success.
    """

    name = "recording"

    def __init__(self, outcomes=None, delay: float = 0.0):
        super().__init__()
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.events = []
        self.active = 0
        self.max_active = 0

    async def deliver(self, phone_number: str, code: str) -> DeliveryResult:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.events.append(("start", phone_number))
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        self.events.append(("end", phone_number))

        outcome = self.outcomes.pop(0) if self.outcomes else True
        if isinstance(outcome, Exception):
            raise outcome
        if outcome:
            return DeliveryResult(success=True, provider_message_id=f"msg-{len(self.events)}")
        return DeliveryResult(success=False, error_code="TEST", error_message="Delivery rejected")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport_factory():
    return RecordingTransport
