"""
SMSLY OTP
=========
One-time passcode issuance, SMS delivery queueing and verification.
"""

__version__ = "0.1.0"

# Configuration
from smsly_otp.config import Settings, OTPConfig, DeliveryConfig, APIConfig

# Errors
from smsly_otp.errors import (
    OTPServiceError,
    InvalidInputError,
    RateLimitedError,
    DeliveryFailed,
    QueueClosedError,
)

# OTP
from smsly_otp.otp import (
    OTPRecord,
    OTPStore,
    VerifyResult,
    generate_otp,
)

# Rate Limiting
from smsly_otp.rate_limit import SlidingWindowLimiter, RateLimitInfo

# Delivery
from smsly_otp.delivery import (
    DeliveryQueue,
    DeliveryJob,
    DeliveryResult,
    BaseDeliveryTransport,
    SimulatedTransport,
    TwilioTransport,
    create_transport,
)

# Service
from smsly_otp.service import OTPService, OTPRequestResult, OTPVerifyResult

__all__ = [
    # Configuration
    "Settings",
    "OTPConfig",
    "DeliveryConfig",
    "APIConfig",
    # Errors
    "OTPServiceError",
    "InvalidInputError",
    "RateLimitedError",
    "DeliveryFailed",
    "QueueClosedError",
    # OTP
    "OTPRecord",
    "OTPStore",
    "VerifyResult",
    "generate_otp",
    # Rate Limiting
    "SlidingWindowLimiter",
    "RateLimitInfo",
    # Delivery
    "DeliveryQueue",
    "DeliveryJob",
    "DeliveryResult",
    "BaseDeliveryTransport",
    "SimulatedTransport",
    "TwilioTransport",
    "create_transport",
    # Service
    "OTPService",
    "OTPRequestResult",
    "OTPVerifyResult",
]
