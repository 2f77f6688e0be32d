"""Bounded retry policy with per-attempt timeout and backoff."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .exceptions import AttemptTimeoutError, TransientError

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 30.0
    attempt_timeout: float | None = None
    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (TransientError,)
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows the given zero-based attempt."""
        return min(self.base_delay * (self.multiplier**attempt), self.max_delay)


async def _run_attempt(
    operation: Callable[[], Awaitable[T]], config: RetryConfig, operation_name: str
) -> T:
    if config.attempt_timeout is None:
        return await operation()
    try:
        return await asyncio.wait_for(operation(), timeout=config.attempt_timeout)
    except TimeoutError as e:
        raise AttemptTimeoutError(
            f"{operation_name} timed out after {config.attempt_timeout}s"
        ) from e


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    operation_name: str = "operation",
    on_retry: Callable[[Exception, int], None] | None = None,
) -> T:
    """Execute async operation under the retry policy.

    Non-retryable exceptions propagate immediately. The last retryable
    exception is re-raised once every attempt has been used.
    """
    if config is None:
        config = RetryConfig()

    last_exception: Exception | None = None

    for attempt in range(config.max_attempts):
        try:
            return await _run_attempt(operation, config, operation_name)
        except config.retryable_exceptions as e:
            last_exception = e
            if attempt == config.max_attempts - 1:
                logger.error(f"{operation_name} failed after {config.max_attempts} attempts: {e}")
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                f"{operation_name} failed (attempt {attempt + 1}/{config.max_attempts}), "
                f"retrying in {delay:.1f}s: {e}"
            )

            if on_retry:
                on_retry(e, attempt)

            await asyncio.sleep(delay)

    raise last_exception  # type: ignore
