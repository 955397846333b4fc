"""structlog setup for applications embedding GitPilot.

GitPilot only calls structlog.get_logger(); nothing is configured on import.
Applications that want GitPilot's events rendered can call configure_logging().
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from ..config import ConfigManager


def configure_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    config: Optional[ConfigManager] = None,
) -> None:
    """Install a structlog pipeline with ISO timestamps and log levels.

    Explicit arguments win over `logging.level` / `logging.format` from config.
    Events go to stderr so they never mix with a program's own stdout.
    """
    config = config or ConfigManager()
    level_name = (level or config.get("logging.level")).upper()
    fmt = fmt or config.get("logging.format")

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level_name)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
