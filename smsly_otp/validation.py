"""
Input Validation
================
Functions for mobile number and OTP code validation.
"""

import re
from typing import Any

# Indian mobile numbers: 10 digits, leading 6-9
MOBILE_NUMBER_PATTERN = re.compile(r'^[6-9][0-9]{9}$')


def validate_mobile_number(mobile_number: Any) -> bool:
    """
    Validate a local mobile number.

    Args:
        mobile_number: Raw value from the request

    Returns:
        True if it is a string of exactly 10 digits starting with 6-9
    """
    if not isinstance(mobile_number, str):
        return False
    return MOBILE_NUMBER_PATTERN.fullmatch(mobile_number) is not None


def validate_otp_code(code: Any, length: int = 6) -> bool:
    """
    Validate an OTP code format.

    Args:
        code: Raw value from the request
        length: Expected number of digits

    Returns:
        True if it is a string of exactly `length` ASCII digits
    """
    if not isinstance(code, str):
        return False
    return len(code) == length and code.isascii() and code.isdigit()


def mask_phone(phone: str) -> str:
    """
    Mask a phone number for safe logging.

    Returns:
        Masked number (e.g., "98******10")
    """
    if len(phone) <= 4:
        return "****"
    return phone[:2] + "*" * (len(phone) - 4) + phone[-2:]
