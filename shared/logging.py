"""
Structured logging setup shared by the ZTI services
"""

import logging
import os
import sys
from typing import Optional

import structlog

NOISY_LOGGERS = ["httpx", "httpcore", "sqlalchemy.engine"]


def configure_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structlog for console or JSON output.

    Args:
        level: Log level name; defaults to LOG_LEVEL env var or INFO
        json_logs: Render JSON lines; defaults to JSON_LOGS env var (false)
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    if json_logs is None:
        json_logs = os.getenv("JSON_LOGS", "false").lower() in ("true", "1", "yes")

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
