"""Navigation-context scoping for in-flight requests."""

import logging
from collections.abc import Awaitable
from typing import Generic, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


class Discarded(Generic[T]):
    """Marker returned instead of a result that no longer has a consumer."""

    __slots__ = ("reason",)

    def __init__(self, reason: str):
        self.reason = reason

    def __repr__(self) -> str:
        return f"Discarded({self.reason!r})"


class FlowScope:
    """Tracks whether results of a logical flow may still be applied.

    A result is applied only while the scope is open and only if its request
    is the latest one issued for the same key. Closing the scope (the user
    navigated away) discards everything still in flight; a newer request for
    the same key supersedes the older one, so a late placeholder can never
    overwrite an authoritative value.
    """

    def __init__(self, name: str = "flow"):
        self.name = name
        self._closed = False
        self._generations: dict[str, int] = {}

    @property
    def is_open(self) -> bool:
        return not self._closed

    def close(self) -> None:
        if not self._closed:
            logger.debug(f"Scope {self.name} closed, in-flight results will be discarded")
        self._closed = True

    def issue(self, key: str) -> int:
        """Register a new request for key and return its ticket."""
        ticket = self._generations.get(key, 0) + 1
        self._generations[key] = ticket
        return ticket

    def is_current(self, key: str, ticket: int) -> bool:
        return self.is_open and self._generations.get(key) == ticket

    async def run(self, key: str, awaitable: Awaitable[T]) -> T | Discarded[T]:
        """Await a request and return its result, or Discarded if it went stale.

        Exceptions from stale requests are discarded as well.
        """
        ticket = self.issue(key)
        try:
            result = await awaitable
        except Exception as e:
            if not self.is_current(key, ticket):
                logger.debug(f"Discarding failed stale {key} request in {self.name}: {e}")
                return Discarded(self._stale_reason())
            raise
        if not self.is_current(key, ticket):
            logger.debug(f"Discarding stale {key} result in {self.name}")
            return Discarded(self._stale_reason())
        return result

    def _stale_reason(self) -> str:
        return "scope closed" if self._closed else "superseded"
