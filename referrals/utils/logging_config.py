"""
Logging configuration.

Configures loguru sinks for services and workers.
"""

import sys

from loguru import logger

from referrals.config.settings import settings


def setup_logging(component: str = "referrals") -> None:
    """
    Configure logger with a stderr sink and file rotation.

    Args:
        component: Name logged at startup (e.g. "reward-worker")
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(f"Starting {component} ({settings.environment})...")
