"""
Logging configuration for the poll engine.

Sets up loguru with appropriate levels and formatting. The package disables
its own logger on import; calling setup_logging turns it back on.
"""

import sys

from loguru import logger
from typing import Any

PACKAGE_NAME = "poll_engine"


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Configure loguru logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: If True, enable debug logging and more verbose output
    """
    # Remove default handler
    logger.remove()
    logger.enable(PACKAGE_NAME)

    log_level = "DEBUG" if debug else level

    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}:{function}:{line}</cyan> - <level>{message}</level>",
    )

    # Votes and reprocessing runs are worth keeping around
    logger.add(
        "poll_engine.log",
        level="INFO",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]}:{function}:{line} - {message}",
        rotation="10 MB",
        retention="7 days",
        compression="zip",
    )

    if debug:
        logger.add(
            "poll_engine_debug.log",
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]}:{function}:{line} - {message}",
            rotation="50 MB",
            retention="3 days",
            compression="zip",
        )


def get_logger(name: str | None = None) -> Any:
    """
    Get a logger instance.

    Args:
        name: Optional component name (defaults to the package name)

    Returns:
        Logger instance bound to the component
    """
    return logger.bind(component=name or PACKAGE_NAME)
