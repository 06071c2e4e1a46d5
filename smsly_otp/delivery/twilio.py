"""
Twilio Delivery Transport
=========================
Production transport sending OTP codes through the Twilio Messages API.
"""

import time
from base64 import b64encode
from typing import Optional
import httpx
import structlog

from ..validation import mask_phone
from .models import DeliveryResult
from .transports import BaseDeliveryTransport

logger = structlog.get_logger(__name__)


class TwilioTransport(BaseDeliveryTransport):
    """
    Twilio SMS transport.

    Either `from_number` or `messaging_service_sid` must be set.
    """

    name = "twilio"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str = "",
        messaging_service_sid: str = "",
        country_prefix: str = "+91",
        message_template: str = "Your verification code is: {code}. Valid for {minutes} minutes.",
        validity_minutes: int = 5,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__()
        if not account_sid or not auth_token:
            raise ValueError("Twilio account_sid and auth_token are required")
        if not from_number and not messaging_service_sid:
            raise ValueError("Twilio from_number or messaging_service_sid is required")
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.country_prefix = country_prefix
        self.message_template = message_template
        self.validity_minutes = validity_minutes
        self.base_url = f"https://api.twilio.com/2010-04-01/Accounts/{self.account_sid}"
        self._client = client
        self._owns_client = client is None

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        if self._client is None:
            auth = b64encode(f"{self.account_sid}:{self.auth_token}".encode()).decode()
            self._client = httpx.AsyncClient(
                headers={"Authorization": f"Basic {auth}"},
                timeout=30.0,
            )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None
        await super().close()

    def render_message(self, code: str) -> str:
        return self.message_template.format(code=code, minutes=self.validity_minutes)

    async def deliver(self, phone_number: str, code: str) -> DeliveryResult:
        """Send the OTP via Twilio."""
        if not self._client:
            raise RuntimeError("Transport not initialized")

        payload = {
            "To": f"{self.country_prefix}{phone_number}",
            "Body": self.render_message(code),
        }
        if self.messaging_service_sid:
            payload["MessagingServiceSid"] = self.messaging_service_sid
        else:
            payload["From"] = self.from_number

        start = time.monotonic()
        try:
            response = await self._client.post(
                f"{self.base_url}/Messages.json",
                data=payload,
            )
        except httpx.HTTPError as e:
            logger.error("Twilio send failed", phone=mask_phone(phone_number), error=str(e))
            return DeliveryResult(
                success=False,
                error_code="TRANSPORT_ERROR",
                error_message=str(e),
            )
        latency_ms = round((time.monotonic() - start) * 1000, 2)

        if response.status_code == 201:
            data = response.json()
            logger.info(
                "Twilio SMS sent",
                phone=mask_phone(phone_number),
                sid=data.get("sid"),
                latency_ms=latency_ms,
            )
            return DeliveryResult(
                success=True,
                provider_message_id=data.get("sid"),
                latency_ms=latency_ms,
                raw_response=data,
            )

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        logger.warning(
            "Twilio rejected SMS",
            phone=mask_phone(phone_number),
            status_code=response.status_code,
            error_code=error_data.get("code"),
        )
        return DeliveryResult(
            success=False,
            error_code=str(error_data.get("code", response.status_code)),
            error_message=error_data.get("message", "Unknown error"),
            latency_ms=latency_ms,
            raw_response=error_data or None,
        )

    async def health_check(self) -> bool:
        """Check Twilio API availability."""
        if not self._client:
            return False

        try:
            response = await self._client.get(f"{self.base_url}.json")
            return response.status_code == 200
        except httpx.HTTPError:
            return False
