"""
Unit Tests for OTP Service
==========================
Request/verify flows over a real store, limiter and queue.
"""

import asyncio

import pytest
import pytest_asyncio

from smsly_otp.config import OTPConfig
from smsly_otp.delivery import DeliveryQueue
from smsly_otp.errors import DeliveryFailed, InvalidInputError, RateLimitedError
from smsly_otp.otp import VerifyResult
from smsly_otp.service import OTPService

PHONE = "9876543210"
CODE = "123456"


def make_config(**overrides) -> OTPConfig:
    options = dict(
        length=6,
        ttl_seconds=300,
        max_attempts=3,
        rate_window_seconds=60,
        rate_max_requests=3,
        sweep_interval_seconds=300.0,
        dev_mode=True,
    )
    options.update(overrides)
    return OTPConfig(**options)


@pytest.fixture
def make_service(clock, transport_factory):
    def factory(transport=None, **overrides):
        queue = DeliveryQueue(transport or transport_factory(), spacing_seconds=0)
        return OTPService(
            config=make_config(**overrides),
            queue=queue,
            generator=lambda: CODE,
            clock=clock,
        )
    return factory


@pytest_asyncio.fixture
async def service(make_service):
    service = make_service()
    await service.start()
    yield service
    await service.stop(drain=False)


class TestRequestOTP:
    """Tests for OTP issuance and queueing."""

    @pytest.mark.asyncio
    async def test_request_queues_delivery(self, service):
        """A fresh number gets position 1 and a 2 second wait estimate."""
        result = await service.request_otp(PHONE)

        assert result.is_new is True
        assert result.queue_position == 1
        assert result.estimated_wait_seconds == 2
        assert result.expires_in_seconds == 300
        assert result.message == "OTP queued for delivery. Position: 1"
        assert result.as_response() == {
            "success": True,
            "message": "OTP queued for delivery. Position: 1",
            "queuePosition": 1,
            "estimatedWaitSeconds": 2,
            "expiresInSeconds": 300,
            "code": CODE,
        }

    @pytest.mark.asyncio
    async def test_resend_reuses_live_code(self, service, clock):
        """A second request within the TTL re-queues the same code."""
        first = await service.request_otp(PHONE)
        service.verify_otp(PHONE, "000000")
        clock.advance(30)

        second = await service.request_otp(PHONE)

        assert second.is_new is False
        assert second.code == first.code
        assert second.queue_position == 2
        assert second.expires_in_seconds == 270
        assert second.message == "OTP already sent. Resend queued at position 2"
        assert service.store.get(PHONE).attempts == 1

    @pytest.mark.asyncio
    async def test_code_hidden_outside_dev_mode(self, make_service):
        service = make_service(dev_mode=False)
        await service.start()

        result = await service.request_otp(PHONE)

        assert result.code is None
        assert "code" not in result.as_response()
        await service.stop(drain=False)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("phone_number,message", [
        (None, "Mobile number is required"),
        ("", "Mobile number is required"),
        ("5876543210", "Please enter a valid 10-digit mobile number"),
        ("98765", "Please enter a valid 10-digit mobile number"),
        (9876543210, "Please enter a valid 10-digit mobile number"),
    ])
    async def test_invalid_phone(self, service, phone_number, message):
        with pytest.raises(InvalidInputError) as exc_info:
            await service.request_otp(phone_number)

        assert exc_info.value.message == message
        assert exc_info.value.status_code == 400
        assert len(service.queue) == 0

    @pytest.mark.asyncio
    async def test_fourth_request_rate_limited(self, service):
        for _ in range(3):
            await service.request_otp(PHONE)

        with pytest.raises(RateLimitedError) as exc_info:
            await service.request_otp(PHONE)

        assert exc_info.value.message == (
            "Too many requests from this number. Please wait a minute before trying again."
        )
        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 60
        assert len(service.queue) == 3

    @pytest.mark.asyncio
    async def test_rate_limit_resets_after_window(self, service, clock):
        for _ in range(3):
            await service.request_otp(PHONE)

        clock.advance(60)
        result = await service.request_otp(PHONE)

        assert result.queue_position >= 1

    @pytest.mark.asyncio
    async def test_delivery_failure_surfaces_on_job(self, make_service, transport_factory):
        """The request succeeds; only the job future reports the failure."""
        service = make_service(transport=transport_factory(outcomes=[False]))
        await service.start()

        result = await service.request_otp(PHONE)

        with pytest.raises(DeliveryFailed):
            await result.job.future
        assert PHONE in service.store
        await service.stop()

    @pytest.mark.asyncio
    async def test_delivery_success_resolves_job(self, service):
        result = await service.request_otp(PHONE)

        delivery = await result.job.future

        assert delivery.success is True
        assert service.queue.stats.delivered == 1


class TestVerifyOTP:
    """Tests for code verification."""

    @pytest.mark.asyncio
    async def test_verify_success_then_not_found(self, service):
        await service.request_otp(PHONE)

        verified = service.verify_otp(PHONE, CODE)
        again = service.verify_otp(PHONE, CODE)

        assert verified.success is True
        assert verified.message == "Mobile number verified successfully"
        assert again.result == VerifyResult.NOT_FOUND
        assert again.message == "No OTP found for this mobile number"

    @pytest.mark.asyncio
    async def test_wrong_code_then_lockout(self, service):
        await service.request_otp(PHONE)

        messages = [service.verify_otp(PHONE, "000000").message for _ in range(3)]

        assert messages == [
            "Invalid OTP, please try again",
            "Invalid OTP, please try again",
            "Too many invalid attempts. Please request a new OTP",
        ]
        assert service.verify_otp(PHONE, CODE).result == VerifyResult.NOT_FOUND

    @pytest.mark.asyncio
    async def test_expired_code(self, service, clock):
        await service.request_otp(PHONE)
        clock.advance(301)

        result = service.verify_otp(PHONE, CODE)

        assert result.success is False
        assert result.message == "OTP has expired. Please request a new one"

    @pytest.mark.asyncio
    async def test_new_code_after_verification(self, make_service, clock):
        codes = iter(["111111", "222222"])
        service = make_service()
        service.generator = lambda: next(codes)
        await service.start()

        await service.request_otp(PHONE)
        assert service.verify_otp(PHONE, "111111").success is True

        result = await service.request_otp(PHONE)

        assert result.is_new is True
        assert result.code == "222222"
        await service.stop(drain=False)

    @pytest.mark.parametrize("phone_number,code,message", [
        (None, CODE, "Mobile number and OTP are required"),
        (PHONE, "", "Mobile number and OTP are required"),
        ("12345", CODE, "Invalid mobile number format"),
        (PHONE, "12345", "OTP must be 6 digits"),
        (PHONE, "12a456", "OTP must be 6 digits"),
        (PHONE, 123456, "OTP must be 6 digits"),
    ])
    def test_invalid_input(self, make_service, phone_number, code, message):
        service = make_service()

        with pytest.raises(InvalidInputError) as exc_info:
            service.verify_otp(phone_number, code)

        assert exc_info.value.message == message

    def test_invalid_input_does_not_count_attempt(self, make_service, clock):
        service = make_service()
        service.store.get_or_create(PHONE, lambda: CODE, 300)

        with pytest.raises(InvalidInputError):
            service.verify_otp(PHONE, "12345")

        assert service.store.get(PHONE).attempts == 0


class TestServiceLifecycle:
    """Tests for start/stop and maintenance."""

    @pytest.mark.asyncio
    async def test_context_manager_starts_and_stops(self, make_service):
        service = make_service()

        async with service:
            assert service.queue.is_running
            assert await service.queue.transport.health_check() is True

        assert not service.queue.is_running
        assert await service.queue.transport.health_check() is False

    @pytest.mark.asyncio
    async def test_run_maintenance_sweeps(self, service, clock):
        await service.request_otp(PHONE)
        clock.advance(301)

        assert service.run_maintenance() == {"expired_removed": 1, "rate_windows_removed": 1}
        assert len(service.store) == 0

    @pytest.mark.asyncio
    async def test_queue_snapshot(self, service):
        await service.request_otp(PHONE)

        snapshot = service.queue_snapshot()

        assert snapshot["pending"] == 1
        assert snapshot["activeOtps"] == 1
        assert snapshot["enqueued"] == 1

    @pytest.mark.asyncio
    async def test_maintenance_loop_survives_errors(self, make_service, monkeypatch):
        """A failing sweep is logged and the next interval still runs."""
        service = make_service(sweep_interval_seconds=0.01)
        calls = []

        def flaky_sweep(now=None):
            calls.append(now)
            if len(calls) == 1:
                raise RuntimeError("sweep failed")
            return 0

        monkeypatch.setattr(service.store, "sweep_expired", flaky_sweep)
        await service.start()

        await asyncio.sleep(0.05)

        assert len(calls) >= 2
        assert not service._maintenance.done()
        await service.stop(drain=False)
