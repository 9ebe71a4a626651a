"""
Logging setup shared by the server entry point and the web app.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict

from uvicorn.config import LOGGING_CONFIG

# Settings file levels -> stdlib levels.
LOG_LEVEL_MAP: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

APP_LOGGERS = ("services", "run_server")


def build_logging_config(level: str = "info") -> Dict[str, Any]:
    """Return a dictConfig payload based on uvicorn's defaults."""
    custom_logging = copy.deepcopy(LOGGING_CONFIG)
    custom_logging["formatters"]["default"]["fmt"] = "%(asctime)s | %(levelprefix)s %(name)s | %(message)s"
    custom_logging["formatters"]["access"]["fmt"] = (
        "%(asctime)s | %(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
    )
    custom_logging["formatters"]["default"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
    custom_logging["formatters"]["access"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
    level_name = logging.getLevelName(LOG_LEVEL_MAP.get(level, logging.INFO))
    for logger_name in APP_LOGGERS:
        custom_logging["loggers"][logger_name] = {
            "handlers": ["default"],
            "level": level_name,
            "propagate": False,
        }
    return custom_logging


def apply_log_level(level: str) -> int:
    """Apply a settings-file log level to the application loggers."""
    resolved = LOG_LEVEL_MAP.get(str(level).lower())
    if resolved is None:
        logging.getLogger(__name__).warning("Unknown log level %r; keeping INFO.", level)
        resolved = logging.INFO
    for logger_name in APP_LOGGERS:
        logging.getLogger(logger_name).setLevel(resolved)
    return resolved
