"""Dispatch backend adapter: trip creation, trip history and SOS creation."""

import logging
from enum import Enum
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from smartline.alerts.models import SOSAlert
from smartline.core.exceptions import NotFoundError, ServiceUnavailableError
from smartline.trip import Trip, TripRequest

from .http import BackendClient

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"


class DispatchBackend(Protocol):
    async def create_trip(self, request: TripRequest) -> Trip: ...

    async def trip_history(self, user_id: str, role: UserRole) -> list[Trip]: ...

    async def active_trip(self) -> Trip | None: ...

    async def create_sos_alert(
        self,
        latitude: float,
        longitude: float,
        trip_id: str | None,
        notes: str | None,
        metadata: dict[str, Any],
    ) -> SOSAlert: ...


_HISTORY_PATHS = {
    UserRole.CUSTOMER: "/trips/passenger/history",
    UserRole.DRIVER: "/trips/driver/history",
}


def _parse_trip(record: dict, source: str) -> Trip:
    try:
        return Trip.from_record(record)
    except (KeyError, TypeError, PydanticValidationError) as e:
        raise ServiceUnavailableError(f"Malformed trip record from {source}: {e}") from e


class HttpDispatchClient:
    def __init__(self, client: BackendClient):
        self._client = client

    async def create_trip(self, request: TripRequest) -> Trip:
        data = await self._client.post("/trips/create", json=request.to_payload())
        record = data.get("trip")
        if not record:
            raise ServiceUnavailableError("Trip creation returned no trip record")
        return _parse_trip(record, "trip creation")

    async def trip_history(self, user_id: str, role: UserRole) -> list[Trip]:
        data = await self._client.get(_HISTORY_PATHS[role], params={"user_id": user_id})
        trips = []
        for record in data.get("trips") or []:
            try:
                trips.append(Trip.from_record(record))
            except (KeyError, PydanticValidationError) as e:
                # Unknown statuses and partial rows cannot be resumed.
                logger.warning(f"Skipping unreadable trip history row: {e}")
        return trips

    async def active_trip(self) -> Trip | None:
        try:
            data = await self._client.get("/trips/active")
        except NotFoundError:
            return None
        record = data.get("trip")
        return _parse_trip(record, "active trip lookup") if record else None

    async def create_sos_alert(
        self,
        latitude: float,
        longitude: float,
        trip_id: str | None,
        notes: str | None,
        metadata: dict[str, Any],
    ) -> SOSAlert:
        data = await self._client.post(
            "/sos/create",
            json={
                "latitude": latitude,
                "longitude": longitude,
                "trip_id": trip_id,
                "notes": notes,
                "metadata": metadata,
            },
        )
        record = data.get("data")
        if not record:
            raise ServiceUnavailableError("SOS creation returned no alert record")
        try:
            return SOSAlert.from_record(record)
        except (KeyError, TypeError, PydanticValidationError) as e:
            raise ServiceUnavailableError(f"Malformed SOS alert record: {e}") from e
