"""
Structured logging configuration.

Sets up structlog on top of stdlib logging. Output is JSON when
LOG_FORMAT=json or ENVIRONMENT=production, human-readable console text
otherwise.

Usage:
    from firetools.core.logging_config import setup_logging, get_logger

    # Once, at program start
    setup_logging()

    # In your code
    logger = get_logger(__name__)
    logger.info("allocation_computed", asset_count=9, is_valid=True)
"""

import logging
import sys

import structlog
from pythonjsonlogger import jsonlogger

from firetools.config import settings


CALLSITE_PARAMETERS = (
    structlog.processors.CallsiteParameter.FILENAME,
    structlog.processors.CallsiteParameter.LINENO,
    structlog.processors.CallsiteParameter.FUNC_NAME,
)


def _use_json() -> bool:
    return settings.LOG_FORMAT == "json" or settings.ENVIRONMENT == "production"


def _processors(use_json: bool) -> list:
    """Context, level, name, timestamp and callsite, then the renderer."""
    renderer = (
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(parameters=CALLSITE_PARAMETERS),
        renderer,
    ]


def setup_logging() -> None:
    """
    Configure structured logging for the toolkit.

    Sets up both stdlib logging and structlog. Modules that log through
    ``logging.getLogger(__name__)`` get the JSON formatter in JSON mode.
    """
    use_json = _use_json()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    )

    structlog.configure(
        processors=_processors(use_json),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_stdlib_handlers(use_json)

    # yfinance is chatty at INFO
    logging.getLogger("yfinance").setLevel(logging.WARNING)


def _configure_stdlib_handlers(use_json: bool = False) -> None:
    """Attach a JSON formatter to the root handler in JSON mode."""
    if not use_json:
        return

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Structured logger with context support

    Example:
        >>> from firetools.core.logging_config import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("asset_added", asset_id="stock-1", asset_class="STOCKS")
    """
    return structlog.get_logger(name)
