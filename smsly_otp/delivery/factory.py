"""
Transport Factory
=================
Builds the configured delivery transport.
"""

import math

from ..config import DeliveryConfig
from .transports import BaseDeliveryTransport, SimulatedTransport
from .twilio import TwilioTransport


def create_transport(config: DeliveryConfig, ttl_seconds: int = 300) -> BaseDeliveryTransport:
    """
    Create a delivery transport by name.

    Args:
        config: Delivery configuration
        ttl_seconds: OTP lifetime, quoted in the SMS text

    Returns:
        Uninitialized transport
    """
    name = config.transport.lower()

    if name == "simulated":
        return SimulatedTransport(
            min_latency=config.min_latency,
            max_latency=config.max_latency,
            success_probability=config.success_probability,
        )

    if name == "twilio":
        return TwilioTransport(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_from_number,
            messaging_service_sid=config.twilio_messaging_service_sid,
            country_prefix=config.country_prefix,
            message_template=config.message_template,
            validity_minutes=max(1, math.ceil(ttl_seconds / 60)),
        )

    raise ValueError(f"Unknown delivery transport: {config.transport}")
