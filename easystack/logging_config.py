"""
Logging configuration.

Access log lines for endpoints that are polled (liveness probes, the
editor refreshing a catalogue node's info) are dropped so that deploy and
service-call activity stays readable.
"""

import logging
from typing import Any, Dict, Iterable, Tuple

DEFAULT_QUIET_PATHS: Tuple[str, ...] = ("/health", "/federated-catalogue/info/")

APP_LOGGERS = ("easystack",)
SERVER_LOGGERS = ("uvicorn", "uvicorn.error")


class QuietPathFilter(logging.Filter):
    """Drops uvicorn access records for GET requests on quiet paths."""

    def __init__(self, paths: Iterable[str] = DEFAULT_QUIET_PATHS):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        if "GET" not in message:
            return True
        return not any(path in message for path in self.paths)


def get_logging_config(
    level: str = "INFO",
    quiet_paths: Iterable[str] = DEFAULT_QUIET_PATHS,
) -> Dict[str, Any]:
    """
    dictConfig for the API process.

    Args:
        level: Level of the easystack loggers and the root logger
        quiet_paths: Path fragments whose GET access lines are dropped
    """
    level = level.upper()
    loggers: Dict[str, Any] = {
        name: {"handlers": ["default"], "level": "INFO", "propagate": False}
        for name in SERVER_LOGGERS
    }
    loggers["uvicorn.access"] = {"handlers": ["access"], "level": "INFO", "propagate": False}
    for name in APP_LOGGERS:
        loggers[name] = {"handlers": ["default"], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "quiet_paths": {"()": QuietPathFilter, "paths": tuple(quiet_paths)},
        },
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
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
        "loggers": loggers,
        "root": {"level": level, "handlers": ["default"]},
    }
