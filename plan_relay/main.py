"""
Plan Relay Entry Point

Runs the relay with uvicorn using settings from the environment.
"""

import logging

import uvicorn

from plan_relay.config import configure_logging, load_settings
from plan_relay.transport import create_app

logger = logging.getLogger(__name__)


def run() -> None:
    """Run the server with uvicorn."""
    settings = load_settings()
    configure_logging(settings.log_level)

    logger.info(f"Plan Relay listening on {settings.host}:{settings.port}")
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
