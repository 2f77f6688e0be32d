"""Route resolution under the bounded route-fetch retry policy."""

import logging

from smartline.core.exceptions import RouteUnavailableError, TransientError
from smartline.core.retry import RetryConfig, with_retry
from smartline.metrics import record_route_attempt
from smartline.settings import RoutingSettings
from smartline.trip import Location

from .directions_client import DirectionsClient, NoRouteFoundError, RouteProvider, RouteResponse

logger = logging.getLogger(__name__)

ROUTE_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (TransientError, NoRouteFoundError)

# 15s per attempt, 2 retries, 1s fixed backoff
ROUTE_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=1.0,
    multiplier=1.0,
    max_delay=1.0,
    attempt_timeout=15.0,
    retryable_exceptions=ROUTE_RETRYABLE_EXCEPTIONS,
)


def _record_failed_attempt(error: Exception, attempt: int) -> None:
    record_route_attempt(type(error).__name__)


class RouteResolver:
    """Fetches a route, retrying per policy, then fails terminally."""

    def __init__(self, provider: RouteProvider, retry_config: RetryConfig = ROUTE_RETRY_CONFIG):
        self._provider = provider
        self._retry_config = retry_config

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry_config

    async def resolve(self, pickup: Location, destination: Location) -> RouteResponse:
        async def attempt() -> RouteResponse:
            route = await self._provider.get_route(pickup.as_lng_lat(), destination.as_lng_lat())
            record_route_attempt("ok")
            return route

        # Timed-out attempts are cancelled, so failures are counted from the retry loop.
        try:
            return await with_retry(
                attempt,
                self._retry_config,
                operation_name="route fetch",
                on_retry=_record_failed_attempt,
            )
        except ROUTE_RETRYABLE_EXCEPTIONS as e:
            _record_failed_attempt(e, self._retry_config.max_attempts - 1)
            logger.error(f"No route from {pickup.as_lng_lat()} to {destination.as_lng_lat()}: {e}")
            raise RouteUnavailableError(
                "Failed to calculate route. Please try again.",
                {"attempts": self._retry_config.max_attempts, "cause": str(e)},
            ) from e
        except Exception as e:
            _record_failed_attempt(e, 0)
            raise


def create_route_resolver(settings: RoutingSettings) -> RouteResolver:
    """Directions client and retry policy as configured by ROUTING_* settings."""
    client = DirectionsClient(
        base_url=settings.base_url,
        access_token=settings.access_token,
        profile=settings.profile,
        timeout=settings.attempt_timeout_seconds,
    )
    return RouteResolver(client, settings.retry_config(ROUTE_RETRYABLE_EXCEPTIONS))
