"""Logging setup for the trip engine service."""

import logging
import sys

from smartline.settings import LogSettings

from .context import ContextFilter
from .filters import PIIFilter
from .formatters import DevFormatter, JSONFormatter

QUIET_LOGGERS = ("httpx", "httpcore", "redis")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def setup_logging(settings: LogSettings | None = None) -> logging.Handler:
    """Install one stdout handler on the root logger and return it.

    Uvicorn's loggers are routed through the same handler, so run the server
    with log_config=None to keep this configuration.
    """
    settings = settings or LogSettings()
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if settings.format == "json":
        handler.setFormatter(JSONFormatter(settings.environment))
    else:
        handler.setFormatter(DevFormatter())
    handler.addFilter(PIIFilter())
    handler.addFilter(ContextFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(settings.level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    # Health probes hit the service constantly
    if settings.level != "DEBUG":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return handler
