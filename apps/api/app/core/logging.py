import logging
import sys

from app.core.config import settings

LOGGER_NAME = "backoffice"


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the application logger, e.g. get_logger("ops") -> backoffice.ops."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure_logging() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(settings.log_level.upper())

    # Prevent duplicate handlers if configured multiple times
    if not logger.handlers:
        # Stream handler (stdout -> container logs)
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(stream_handler)

    return logger
