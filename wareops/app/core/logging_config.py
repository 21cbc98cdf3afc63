from __future__ import annotations

import logging
import os
import sys

import structlog


def configure_logging() -> None:
    """structlog par-dessus logging : console lisible en dev, JSON si WAREOPS_LOG_JSON=1."""
    level = getattr(logging, os.getenv("WAREOPS_LOG_LEVEL", "INFO").upper(), logging.INFO)
    as_json = os.getenv("WAREOPS_LOG_JSON", "0") == "1"

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = structlog.processors.JSONRenderer() if as_json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
