"""Structured logging setup for ctrlboard.

Level and output format come from AppConfig (LOG_LEVEL, LOG_FORMAT). Library
modules keep using ``logging.getLogger(__name__)``; the web layer uses
structlog directly so request ids bound in contextvars show up on every line.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

from ctrlboard.config import AppConfig, get_config

LOG_FILE = Path("logs/ctrlboard.log")

SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_format: str) -> Any:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(config: Optional[AppConfig] = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        config: Settings to apply (the process-wide config if None)

    Safe to call more than once: handlers are attached only on the first
    call, while level and renderer follow the latest config.
    """
    config = config or get_config()

    structlog.configure(
        processors=SHARED_PROCESSORS + [_renderer(config.log_format)],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    if not root.handlers:
        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        # Only write a file when the deployment created the logs directory
        if LOG_FILE.parent.exists():
            handlers.append(logging.FileHandler(LOG_FILE))
        formatter = logging.Formatter("%(message)s")
        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)
    root.setLevel(config.log_level.upper())
