"""
Run the relay with uvicorn.

Usage:
    python -m watchsync
"""

import logging

import uvicorn

from watchsync.config import RelaySettings
from watchsync.transport.app import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = RelaySettings.from_env()
    app = create_app(settings)

    logger.info(f"watchsync listening on {settings.host}:{settings.port}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
