"""
Logging setup for the session API.

Access lines for paths that run without a session (health probes) are
dropped, and debug runs show where each session log line came from.
"""

import logging
import logging.config
import re
from typing import Any, Dict, Iterable

# paths served outside the session middleware
QUIET_PATHS = ("/health",)

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEBUG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"


class QuietPathFilter(logging.Filter):
    """Drop uvicorn access lines for GET requests to quiet paths."""

    def __init__(self, paths: Iterable[str] = QUIET_PATHS):
        super().__init__()
        self.paths = tuple(paths)
        alternatives = "|".join(re.escape(path) for path in self.paths)
        self._pattern = re.compile(rf"\bGET (?:{alternatives})(?:[ ?\"]|$)")

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access" or not self.paths:
            return True
        args = record.args
        # uvicorn passes (client, method, path, http_version, status)
        if isinstance(args, tuple) and len(args) >= 3:
            request_line = f"{args[1]} {args[2]}"
        else:
            request_line = record.getMessage()
        return self._pattern.search(request_line) is None


def _logger(handler: str, level: str) -> Dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def get_logging_config(level: str = "INFO", quiet_paths: Iterable[str] = QUIET_PATHS) -> Dict[str, Any]:
    """
    Build the dictConfig for uvicorn and the sessionly loggers.

    Args:
        level: Level name for every configured logger
        quiet_paths: Paths whose GET access lines are dropped
    """
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "quiet_paths": {"()": QuietPathFilter, "paths": tuple(quiet_paths)},
        },
        "formatters": {
            "default": {"format": DEBUG_FORMAT if level == "DEBUG" else DEFAULT_FORMAT},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["quiet_paths"],
            },
        },
        "loggers": {
            "uvicorn": _logger("default", level),
            "uvicorn.access": _logger("access", level),
            "sessionly": _logger("default", level),
        },
        "root": {"level": level, "handlers": ["default"]},
    }


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(get_logging_config(level))
