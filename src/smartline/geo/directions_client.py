from typing import Protocol

import httpx
import polyline
from pydantic import BaseModel

from smartline.core.exceptions import (
    AuthorizationError,
    NetworkError,
    ServiceUnavailableError,
    ValidationError,
)


class RouteResponse(BaseModel):
    distance_meters: float
    duration_seconds: float
    geometry: list[tuple[float, float]]

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    @property
    def duration_min(self) -> float:
        return self.duration_seconds / 60


class NoRouteFoundError(ValidationError):
    """No route found between coordinates."""

    pass


class DirectionsServiceError(ServiceUnavailableError):
    """Directions service error (5xx or connection failure). Retryable."""

    pass


class DirectionsTimeoutError(NetworkError):
    """Directions request timeout. Retryable."""

    pass


class RouteProvider(Protocol):
    async def get_route(
        self, start: tuple[float, float], end: tuple[float, float]
    ) -> RouteResponse: ...


def decode_polyline(encoded: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode polyline string to list of (lat, lon) tuples."""
    coords = polyline.decode(encoded, precision)
    return [(lat, lon) for lat, lon in coords]


class DirectionsClient:
    """Mapbox-compatible directions client.

    Coordinates are passed as (lng, lat) pairs, matching the provider's URL
    format. The returned geometry is a list of (lat, lon) points.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str = "",
        profile: str = "driving",
        timeout: float = 15.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.profile = profile
        self.timeout = timeout

    def _route_url(self, start: tuple[float, float], end: tuple[float, float]) -> str:
        start_lng, start_lat = start
        end_lng, end_lat = end
        return (
            f"{self.base_url}/directions/v5/mapbox/{self.profile}/"
            f"{start_lng},{start_lat};{end_lng},{end_lat}"
        )

    async def get_route(
        self, start: tuple[float, float], end: tuple[float, float]
    ) -> RouteResponse:
        """Get the driving route between two [lng, lat] coordinates."""
        params = {"overview": "full", "geometries": "polyline"}
        if self.access_token:
            params["access_token"] = self.access_token

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self._route_url(start, end), params=params)
        except httpx.TimeoutException as e:
            raise DirectionsTimeoutError(f"Request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise DirectionsServiceError(f"Network error: {e}") from e

        if response.status_code in (401, 403):
            raise AuthorizationError("Directions access token rejected")
        if response.status_code >= 500:
            raise DirectionsServiceError(f"Directions server error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise DirectionsServiceError(
                f"Unreadable directions response (status {response.status_code})"
            ) from e
        if not isinstance(data, dict):
            raise DirectionsServiceError("Unexpected directions response shape")

        routes = data.get("routes") or []
        if data.get("code") in ("NoRoute", "NoSegment") or not routes:
            raise NoRouteFoundError("No route found between coordinates")

        route = routes[0]
        try:
            return RouteResponse(
                distance_meters=float(route["distance"]),
                duration_seconds=float(route["duration"]),
                geometry=decode_polyline(route["geometry"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DirectionsServiceError(f"Malformed route in directions response: {e}") from e
