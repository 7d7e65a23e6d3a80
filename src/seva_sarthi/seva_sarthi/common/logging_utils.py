"""Centralized logging configuration.

All modules use `get_logger(__name__)`; `configure_logging` is called once by the app factory.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_initialized = False


def configure_logging(level: str = "INFO") -> None:
    global _initialized
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if _initialized:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root.addHandler(handler)
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
