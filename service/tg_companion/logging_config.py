"""
Logging configuration for the companion service.
"""

import logging
import sys

LOGGER_NAME = "tg_companion"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Setup logging with proper format and handlers."""

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(area: str) -> logging.Logger:
    """Child logger for one area of the service, e.g. ``get_logger("chat")``."""
    return logging.getLogger(f"{LOGGER_NAME}.{area}")


# Global logger instance
service_logger = setup_logging()
