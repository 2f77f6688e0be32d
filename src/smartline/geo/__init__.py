from .directions_client import (
    DirectionsClient,
    DirectionsServiceError,
    DirectionsTimeoutError,
    NoRouteFoundError,
    RouteProvider,
    RouteResponse,
)
from .routing import (
    ROUTE_RETRY_CONFIG,
    ROUTE_RETRYABLE_EXCEPTIONS,
    RouteResolver,
    create_route_resolver,
)

__all__ = [
    "DirectionsClient",
    "DirectionsServiceError",
    "DirectionsTimeoutError",
    "NoRouteFoundError",
    "RouteProvider",
    "RouteResponse",
    "ROUTE_RETRY_CONFIG",
    "ROUTE_RETRYABLE_EXCEPTIONS",
    "RouteResolver",
    "create_route_resolver",
]
