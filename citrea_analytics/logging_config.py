"""
Logging setup shared by the CLI entry points.

Every module logs through ``logging.getLogger(__name__)``; only the
process entry points call :func:`configure_logging`.
"""

import logging
import logging.config


def configure_logging(level: str = "INFO", force: bool = True) -> None:
    """
    Configure root logging with a concise console formatter.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    force : bool
        Whether to override an existing configuration (``False`` keeps
        handlers installed by a host such as pytest).
    """
    if not force and logging.getLogger().handlers:
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "level": level,
                }
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )
