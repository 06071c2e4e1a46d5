"""
OTP Code Generation
===================
Secure generation and comparison of numeric OTP codes.
"""

import hmac
import secrets
from typing import Any, Callable


CodeGenerator = Callable[[], str]


def generate_otp(length: int = 6) -> str:
    """
    Generate a secure random numeric OTP.

    Args:
        length: Number of digits

    Returns:
        OTP string of exactly `length` digits (leading zeros kept)
    """
    if length < 1:
        raise ValueError("OTP length must be positive")
    otp = secrets.randbelow(10 ** length)
    return str(otp).zfill(length)


def numeric_generator(length: int = 6) -> CodeGenerator:
    """Bind `generate_otp` to a fixed length for use by the store."""
    def generate() -> str:
        return generate_otp(length)
    return generate


def codes_match(supplied: Any, stored: str) -> bool:
    """
    Compare a supplied code with the stored one.

    Exact string equality only: non-strings and different lengths never match.
    Uses constant-time comparison.
    """
    if not isinstance(supplied, str):
        return False
    if len(supplied) != len(stored):
        return False
    return hmac.compare_digest(supplied.encode(), stored.encode())
