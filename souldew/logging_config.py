"""Logging setup for SoulDew.

Bus modules log structured events through structlog, e.g.
``logger.debug("event_subscribed", event_name="user.saved", once=False)``.
configure_logging() routes those records through the stdlib root logger,
to stderr or a log file, rendered for a console or as JSON lines.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from souldew.config import BusSettings

# Applied to every record before rendering.
_SHARED_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
)


def _build_handler(log_file: Path | None) -> logging.Handler:
    if log_file is None:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    else:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _renderer(json_output: bool, colors: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors)


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Path | None = None,
    colors: bool = True,
) -> None:
    """Configure structured logging.

    Calling this again replaces the root handlers and closes the previous
    ones, including a previously opened log file.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines instead of console output
        log_file: Append to this file instead of stderr
        colors: Whether to use colors in console output
    """
    logging.basicConfig(
        handlers=[_build_handler(log_file)],
        level=getattr(logging, level.upper()),
        force=True,
    )

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _renderer(json_output, colors)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def configure_from_settings(settings: BusSettings) -> None:
    """Apply the logging part of BusSettings."""
    configure_logging(
        level=settings.log_level,
        json_output=settings.json_logs,
        log_file=settings.log_file,
        colors=not settings.json_logs,
    )
