"""Pub/sub channel definitions and message schemas."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from smartline.trip import TripStatus

from .bus import Topic

# Channel names
CHANNEL_SOS_ALERTS = "sos-alerts"
CHANNEL_TRIP_STATUS = "trip-status"

ALL_CHANNELS = [
    CHANNEL_SOS_ALERTS,
    CHANNEL_TRIP_STATUS,
]


class TripStatusMessage(BaseModel):
    """Status change emitted by the dispatch backend for one trip."""

    trip_id: str
    status: TripStatus
    driver_id: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


TRIP_STATUS = Topic(CHANNEL_TRIP_STATUS, TripStatusMessage)
