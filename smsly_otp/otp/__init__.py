"""
OTP Generation and Storage
==========================
Numeric OTP generation and an in-memory store with TTL and attempt limits.
"""

from .models import OTPRecord, VerifyResult
from .generator import CodeGenerator, generate_otp, numeric_generator, codes_match
from .store import OTPStore

__all__ = [
    # Models
    "OTPRecord",
    "VerifyResult",
    # Generation
    "CodeGenerator",
    "generate_otp",
    "numeric_generator",
    "codes_match",
    # Store
    "OTPStore",
]
