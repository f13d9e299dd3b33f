import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory

from .config import DEFAULT_LOG_FORMAT, DEFAULT_LOG_LEVEL

_configured = False


def _processors(log_format: str) -> list:
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _configure_structlog(log_format: str):
    # Loggers are not cached so module-level loggers pick up reconfiguration
    structlog.configure(
        processors=_processors(log_format),
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def configure_default_logging():
    """
    Route library logs through stdlib logging unless the host already configured structlog.

    Stdlib logging then decides levels and handlers; with no handlers installed
    only warnings and above reach stderr.
    """
    if structlog.is_configured():
        return
    _configure_structlog(DEFAULT_LOG_FORMAT)


def configure_logging(log_level: str = DEFAULT_LOG_LEVEL, log_format: str = DEFAULT_LOG_FORMAT, force: bool = False):
    """
    Configure structured logging on top of the stdlib logging module.

    Logs go to stderr so they never interleave with program output on stdout.

    Args:
        log_level: Name of the stdlib logging level
        log_format: "console" for human readable lines, "json" for one JSON object per line
        force: Reconfigure even if configure_logging already ran
    """
    global _configured
    if _configured and not force:
        return

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
        stream=sys.stderr,
        force=True,  # Override any root logger config
    )
    _configure_structlog(log_format)
    _configured = True

    logger = structlog.get_logger()
    logger.debug("Logging configured", log_level=log_level, log_format=log_format)
