"""
Rate Limiting
=============
Sliding window rate limiter for OTP requests.
"""

from .models import RateLimitInfo
from .sliding_window import SlidingWindowLimiter

__all__ = [
    # Models
    "RateLimitInfo",
    # Limiters
    "SlidingWindowLimiter",
]
