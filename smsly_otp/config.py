"""
OTP Service Configuration
=========================
Environment-driven configuration for the OTP service, delivery queue and HTTP API.

Values are read when the dataclass is instantiated, so tests can patch the
environment and build a fresh `Settings.from_env()`.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    return os.environ.get(name, "true" if default else "false").lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class OTPConfig:
    """Configuration for OTP issuance and verification."""
    length: int = field(default_factory=lambda: _env_int("OTP_LENGTH", 6))
    ttl_seconds: int = field(default_factory=lambda: _env_int("OTP_TTL_SECONDS", 300))  # 5 minutes
    max_attempts: int = field(default_factory=lambda: _env_int("OTP_MAX_ATTEMPTS", 3))
    rate_window_seconds: int = field(default_factory=lambda: _env_int("OTP_RATE_WINDOW_SECONDS", 60))
    rate_max_requests: int = field(default_factory=lambda: _env_int("OTP_RATE_MAX_REQUESTS", 3))
    sweep_interval_seconds: float = field(
        default_factory=lambda: _env_float("OTP_SWEEP_INTERVAL_SECONDS", 300.0)
    )
    # Returns the raw code in API responses. Never enable outside development.
    dev_mode: bool = field(default_factory=lambda: _env_bool("OTP_DEV_MODE", False))


@dataclass
class DeliveryConfig:
    """Configuration for the SMS delivery queue and its transport."""
    transport: str = field(default_factory=lambda: _env_str("OTP_DELIVERY_TRANSPORT", "simulated"))
    min_latency: float = field(default_factory=lambda: _env_float("OTP_DELIVERY_MIN_LATENCY", 2.0))
    max_latency: float = field(default_factory=lambda: _env_float("OTP_DELIVERY_MAX_LATENCY", 3.0))
    success_probability: float = field(
        default_factory=lambda: _env_float("OTP_DELIVERY_SUCCESS_RATE", 0.95)
    )
    spacing_seconds: float = field(default_factory=lambda: _env_float("OTP_DELIVERY_SPACING", 0.5))
    country_prefix: str = field(default_factory=lambda: _env_str("OTP_COUNTRY_PREFIX", "+91"))
    message_template: str = "Your verification code is: {code}. Valid for {minutes} minutes."
    twilio_account_sid: str = field(default_factory=lambda: _env_str("TWILIO_ACCOUNT_SID", ""))
    twilio_auth_token: str = field(default_factory=lambda: _env_str("TWILIO_AUTH_TOKEN", ""))
    twilio_from_number: str = field(default_factory=lambda: _env_str("TWILIO_FROM_NUMBER", ""))
    twilio_messaging_service_sid: str = field(
        default_factory=lambda: _env_str("TWILIO_MESSAGING_SERVICE_SID", "")
    )


@dataclass
class APIConfig:
    """Configuration for the HTTP surface."""
    host: str = field(default_factory=lambda: _env_str("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 3000))
    service_name: str = field(default_factory=lambda: _env_str("SERVICE_NAME", "smsly-otp"))
    log_level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "INFO"))
    json_logs: bool = field(default_factory=lambda: _env_bool("LOG_JSON", True))
    cors_origins: List[str] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )
    # Peers allowed to set X-Forwarded-For (e.g., the load balancer)
    trusted_proxies: List[str] = field(default_factory=lambda: _env_list("TRUSTED_PROXIES", ""))
    # Per client address, 15 minute window
    transport_window_seconds: int = 15 * 60
    send_limit: int = field(default_factory=lambda: _env_int("API_SEND_LIMIT", 5))
    verify_limit: int = field(default_factory=lambda: _env_int("API_VERIFY_LIMIT", 10))


@dataclass
class Settings:
    """All configuration sections for one process."""
    otp: OTPConfig = field(default_factory=OTPConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    api: APIConfig = field(default_factory=APIConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(otp=OTPConfig(), delivery=DeliveryConfig(), api=APIConfig())
