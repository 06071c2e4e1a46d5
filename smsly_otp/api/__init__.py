"""
OTP HTTP API
============
FastAPI surface for the OTP service.
"""

from .app import create_app
from .limits import ClientRateLimits
from .middleware import RequestLoggingMiddleware, setup_cors

__all__ = [
    "create_app",
    "ClientRateLimits",
    "RequestLoggingMiddleware",
    "setup_cors",
]
