"""Logging configuration helpers for the quiz application."""

from __future__ import annotations

import logging
from logging import Logger
import os

LOG_LEVEL_ENV = "QUIZ_DELIVERY_LOG_LEVEL"


def configure_logging(level: str | None = None) -> Logger:
    """Configure basic logging for the application and return the package logger."""
    level_name = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("quiz_delivery")
