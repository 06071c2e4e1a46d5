"""
Transport Rate Limits
=====================
Per-client-address request limits applied in front of the OTP service.
"""

import asyncio
import time
from typing import Callable
from fastapi import Request
import structlog

from ..config import APIConfig
from ..errors import RateLimitedError
from ..rate_limit import SlidingWindowLimiter
from .middleware import get_client_ip

logger = structlog.get_logger(__name__)

SEND_LIMIT_MESSAGE = "Too many OTP requests, please try again later"
VERIFY_LIMIT_MESSAGE = "Too many verification attempts, please try again later"


class ClientRateLimits:
    """Separate sliding windows for send and verify requests, keyed by client address."""

    def __init__(self, config: APIConfig, clock: Callable[[], float] = time.time):
        self.trusted_proxies = frozenset(config.trusted_proxies)
        self.send = SlidingWindowLimiter(
            rate=config.send_limit,
            window=config.transport_window_seconds,
            clock=clock,
        )
        self.verify = SlidingWindowLimiter(
            rate=config.verify_limit,
            window=config.transport_window_seconds,
            clock=clock,
        )

    def client_ip(self, request: Request) -> str:
        return get_client_ip(request.scope, self.trusted_proxies)

    def check_send(self, client_ip: str) -> None:
        self._check(self.send, "send", client_ip, SEND_LIMIT_MESSAGE)

    def check_verify(self, client_ip: str) -> None:
        self._check(self.verify, "verify", client_ip, VERIFY_LIMIT_MESSAGE)

    def prune(self) -> int:
        """
        Drop idle client windows from both limiters.

        Returns:
            Number of client windows removed
        """
        return self.send.prune() + self.verify.prune()

    def _check(self, limiter: SlidingWindowLimiter, prefix: str, client_ip: str, message: str) -> None:
        info = limiter.check(limiter.get_key(prefix, client_ip))
        if not info.allowed:
            logger.warning("Client rate limited", endpoint=prefix, client_ip=client_ip)
            raise RateLimitedError(message, retry_after=info.retry_after, headers=info.as_headers())


async def prune_client_limits(limits: ClientRateLimits, interval_seconds: float) -> None:
    """Periodically drop idle client windows. Runs until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = limits.prune()
        except Exception as e:
            logger.error("Client rate limit pruning failed", error=str(e), exc_info=True)
            continue
        if removed:
            logger.info("Client rate windows pruned", removed=removed)


async def limit_send(request: Request) -> None:
    limits: ClientRateLimits = request.app.state.client_limits
    limits.check_send(limits.client_ip(request))


async def limit_verify(request: Request) -> None:
    limits: ClientRateLimits = request.app.state.client_limits
    limits.check_verify(limits.client_ip(request))
