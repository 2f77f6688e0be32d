"""Task-local logging context for adding fields to log records."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


class LogContext:
    """Context-variable storage for log context fields.

    Each asyncio task sees its own copy, so concurrent flows never leak
    fields into each other's records.
    """

    @classmethod
    def set(cls, **kwargs: Any) -> None:
        _context.set({**_context.get(), **kwargs})

    @classmethod
    def get(cls) -> dict[str, Any]:
        return _context.get()

    @classmethod
    def clear(cls) -> None:
        _context.set({})


class ContextFilter(logging.Filter):
    """Injects LogContext fields into log records.

    Records logged outside any trip or alert context get correlation_id "-"
    so the dev format string always resolves.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in LogContext.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Context manager that sets logging context fields.

    Fields are injected into log records via ContextFilter, which must
    be attached to the handler (see setup_logging). The enclosing context
    is restored on exit.
    """
    token = _context.set({**_context.get(), **kwargs})
    try:
        yield
    finally:
        _context.reset(token)


@contextmanager
def log_trip_context(trip_id: str, **kwargs: Any) -> Iterator[None]:
    """Convenience context manager for trip operations."""
    correlation_id = kwargs.pop("correlation_id", trip_id)
    with log_context(trip_id=trip_id, correlation_id=correlation_id, **kwargs):
        yield
