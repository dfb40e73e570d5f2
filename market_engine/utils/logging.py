"""Logging configuration for the headless runner."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

PACKAGE_LOGGER = "market_engine"


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> logging.Logger:
    """Attach one stream handler to the package logger and return it.

    The root logger and any host application's handlers are left alone.
    Calling again swaps the handler instead of stacking a second one.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)-5s] %(name)-32s | %(message)s",
        datefmt="%H:%M:%S",
    ))

    package = logging.getLogger(PACKAGE_LOGGER)
    package.setLevel(numeric_level)
    package.handlers.clear()
    package.addHandler(handler)
    package.propagate = False
    return package
