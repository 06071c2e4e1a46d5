"""
Run the OTP API server.

    python -m smsly_otp
"""

import uvicorn
import structlog

from smsly_otp.api import create_app
from smsly_otp.config import Settings
from smsly_otp.logging_config import setup_logging

logger = structlog.get_logger(__name__)


def main() -> None:
    settings = Settings.from_env()
    setup_logging(
        service_name=settings.api.service_name,
        level=settings.api.log_level,
        json_output=settings.api.json_logs,
    )

    logger.info(
        "OTP verification server starting",
        host=settings.api.host,
        port=settings.api.port,
        endpoints=["POST /api/send-otp", "POST /api/verify-otp", "GET /api/health"],
    )
    uvicorn.run(
        create_app(settings),
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
