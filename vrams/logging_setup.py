"""Logging setup for the application service.

One stdout handler on the root logger; module loggers under ``vrams``
propagate to it. The ``vrams`` level comes from ``VRAMS_LOG_LEVEL``
(default INFO) so submission and resolver traces can be turned up without
touching uvicorn's output.
"""
from __future__ import annotations
import logging
import os
from logging.config import dictConfig

_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def build_logging_config(level: str = "INFO") -> dict:
    level = level.upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": _FORMAT}},
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": "INFO", "handlers": ["stdout"]},
        "loggers": {
            "vrams": {"level": level},
            **{name: {"level": "INFO", "handlers": ["stdout"], "propagate": False} for name in _UVICORN_LOGGERS},
        },
    }


def configure_logging() -> None:
    """Install the service logging config unless the root logger is already set up."""
    if logging.getLogger().handlers:
        return
    dictConfig(build_logging_config(os.environ.get("VRAMS_LOG_LEVEL", "INFO")))


__all__ = ["build_logging_config", "configure_logging"]
