"""Logging configuration for fiscalhub."""

import logging
import sys

from fiscalhub.core.config import Settings, get_settings

# Transport libraries log every request at INFO.
_TRANSPORT_LOGGERS = ("httpx", "httpcore", "redis")


def setup_logging(settings: Settings | None = None) -> int:
    """Configure process-wide logging for a fiscalhub client.

    Level is DEBUG when settings.debug is True, otherwise INFO; transport
    loggers stay at WARNING unless debugging. Output goes to stdout.

    Returns:
        The log level requested for the root logger.
    """
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    transport_level = logging.DEBUG if settings.debug else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
    return log_level
