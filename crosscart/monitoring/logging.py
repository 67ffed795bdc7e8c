"""Logging setup shared by the API process and the maintenance scripts."""

from __future__ import annotations

import logging

from crosscart.config.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Client libraries that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "openai")


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger; ``level`` overrides ``LOG_LEVEL``."""

    resolved = getattr(logging, (level or get_settings().log_level).upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
