"""Logging setup for the community portal (INFO -> stdout, WARNING+ -> stderr)"""

import logging
import sys

from community_portal.config import config

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


class BelowWarningFilter(logging.Filter):
    """Pass DEBUG and INFO records only"""

    def filter(self, record):
        return record.levelno < logging.WARNING


def _stream_handler(stream, level: int, formatter: logging.Formatter):
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level_name: str | None = None):
    """
    Configure the root logger for the portal process.

    The level comes from ``config["log_level"]`` unless ``level_name`` is
    given. Calling this twice replaces the handlers instead of stacking them.
    """
    level_name = (level_name or config.get("log_level") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = _stream_handler(sys.stdout, logging.DEBUG, formatter)
    stdout_handler.addFilter(BelowWarningFilter())
    stderr_handler = _stream_handler(sys.stderr, logging.WARNING, formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)
