"""
Unit Tests for Input Validation
===============================
"""

import pytest

from smsly_otp.validation import mask_phone, validate_mobile_number, validate_otp_code


class TestMobileNumberValidation:
    """Tests for mobile number validation."""

    @pytest.mark.parametrize("number", ["9876543210", "6000000000", "7123456789", "8999999999"])
    def test_valid_numbers(self, number):
        assert validate_mobile_number(number) is True

    @pytest.mark.parametrize("number", [
        "5876543210",   # leading digit below 6
        "987654321",    # too short
        "98765432100",  # too long
        "+919876543210",
        "98765 43210",
        "9876543210\n",
        "９８７６５４３２１０",  # full-width digits
        "",
    ])
    def test_invalid_numbers(self, number):
        assert validate_mobile_number(number) is False

    @pytest.mark.parametrize("value", [None, 9876543210, ["9876543210"]])
    def test_non_string_rejected(self, value):
        assert validate_mobile_number(value) is False


class TestOTPCodeValidation:
    """Tests for OTP code format validation."""

    def test_valid_code(self):
        assert validate_otp_code("012345") is True

    @pytest.mark.parametrize("code", ["12345", "1234567", "12a456", " 12345", "١٢٣٤٥٦", 123456, None])
    def test_invalid_code(self, code):
        assert validate_otp_code(code) is False

    def test_custom_length(self):
        assert validate_otp_code("1234", length=4) is True
        assert validate_otp_code("123456", length=4) is False


class TestMaskPhone:
    """Tests for log masking."""

    def test_mask_keeps_edges(self):
        assert mask_phone("9876543210") == "98******10"

    def test_mask_short_values(self):
        assert mask_phone("1234") == "****"
