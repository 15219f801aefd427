"""
Logging configuration for the limit engine.

All modules obtain their logger through get_logger(__name__) so output is
structured the same way whether it is rendered for a console or as JSON.
"""
import logging
import sys

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(level: str = "INFO", format_json: bool = False, include_timestamp: bool = True) -> None:
    """
    Configure structlog for the package.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        format_json: If True, render JSON lines; otherwise console output
        include_timestamp: Add an ISO timestamp to every event
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(message)s")

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Return a structlog logger bound to `name` (typically __name__)."""
    return structlog.get_logger(name)
