import logging
from logging.config import dictConfig
from typing import Optional

from .config import config


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger from LoggingConfig (WMCOACH_LOG_LEVEL)."""
    level = (level or config.logging.log_level).upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": config.logging.log_format,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", level)
