"""
HTTP Middleware
===============
CORS configuration and request logging for the OTP API.
"""

import time
import uuid
from typing import Iterable, List, Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

logger = structlog.get_logger(__name__)


def setup_cors(app: FastAPI, origins: List[str]) -> None:
    """
    Configure CORS middleware for the browser front-end.

    Args:
        app: FastAPI application instance
        origins: Allowed origins
    """
    if "*" in origins:
        logger.warning(
            "CORS wildcard detected! This is insecure in production.",
            origins=origins,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    logger.info("CORS configured", origins_count=len(origins))


def get_client_ip(scope, trusted_proxies: Iterable[str] = ()) -> str:
    """
    Resolve the client address for a request.

    X-Forwarded-For is only honoured when the socket peer is a trusted
    proxy. Hops are read right to left and the first untrusted one wins,
    so a client cannot pick its own address by prepending values.

    Args:
        scope: ASGI connection scope
        trusted_proxies: Addresses of proxies in front of the service

    Returns:
        Client address, or "unknown" if the server did not report a peer
    """
    client = scope.get("client")
    peer = client[0] if client else "unknown"

    trusted = set(trusted_proxies)
    if peer not in trusted:
        return peer

    forwarded = b",".join(
        value for name, value in scope.get("headers", []) if name == b"x-forwarded-for"
    ).decode("latin-1")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


class RequestLoggingMiddleware:
    """
    ASGI middleware binding a request id into structlog context and
    logging one line per HTTP request.
    """

    def __init__(self, app, trusted_proxies: Iterable[str] = ()):
        self.app = app
        self.trusted_proxies = frozenset(trusted_proxies)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = headers.get(b"x-request-id", b"").decode()[:64] or uuid.uuid4().hex[:8]
        method = scope.get("method", "")
        path = scope.get("path", "")

        structlog.contextvars.bind_contextvars(request_id=request_id)
        start_time = time.time()
        status_code: Optional[int] = None

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                message.setdefault("headers", [])
                message["headers"] = list(message["headers"]) + [
                    (b"x-request-id", request_id.encode())
                ]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "Request completed",
                method=method,
                path=path,
                status_code=status_code or 500,
                duration_ms=int((time.time() - start_time) * 1000),
                client_ip=get_client_ip(scope, self.trusted_proxies),
            )
            structlog.contextvars.unbind_contextvars("request_id")
