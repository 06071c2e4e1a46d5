"""
Rate Limit Models
=================
Quota details returned by a limiter check.
"""

from typing import Dict, Optional
from dataclasses import dataclass


@dataclass
class RateLimitInfo:
    """Outcome of one `check` against a sliding window."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: int  # Unix timestamp
    retry_after: Optional[int] = None  # Seconds until retry allowed

    def as_headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers
