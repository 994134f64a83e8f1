import logging
import sys
from pathlib import Path

import structlog

from .config import settings

_QUIET = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(level: str | None = None):
    """JSON event logs on stdout, errors optionally mirrored to LOG_ERROR_FILE."""
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), log_level))

    error_file = settings.log_error_file.strip()
    if error_file:
        Path(error_file).parent.mkdir(parents=True, exist_ok=True)
        root.addHandler(_handler(logging.FileHandler(error_file), logging.ERROR))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        cache_logger_on_first_use=False,
    )
    for name in _QUIET:
        logging.getLogger(name).setLevel(log_level)
