"""Main entry point for the DonutSMP bot.

Example:
    Run from command line::

        donutsmp-bot

    Or run directly::

        python -m donutsmp_bot.main
"""

import uvicorn

from donutsmp_bot.config.settings import get_settings
from donutsmp_bot.logging_config import get_logger, setup_logging

logger = get_logger("main")


def main() -> None:
    """Run the webhook server.

    The bot keeps per-process state (the online status poster and its
    tracked message id), so the server runs a single worker.
    """
    settings = get_settings()
    setup_logging(settings.log_level, settings=settings)

    logger.info(
        "Starting DonutSMP bot | env=%s | host=%s | port=%d",
        settings.environment,
        settings.server_host,
        settings.server_port,
    )

    uvicorn.run(
        "donutsmp_bot.app:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
        access_log=settings.environment != "production",
    )


if __name__ == "__main__":
    main()
