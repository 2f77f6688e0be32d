"""SOS alert records delivered over the safety change feed."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AlertStatus(str, Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"


class SOSAlert(BaseModel):
    """A safety alert raised from a rider or driver app."""

    id: str
    trip_id: str | None = None
    driver_id: str | None = None
    reporter_id: str | None = None
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    status: AlertStatus = AlertStatus.PENDING
    notes: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def location_url(self) -> str:
        """Link to the alert position on a map."""
        return f"https://www.google.com/maps/search/?api=1&query={self.latitude},{self.longitude}"

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "SOSAlert":
        return cls(
            id=str(record["id"]),
            trip_id=record.get("trip_id"),
            driver_id=record.get("driver_id"),
            reporter_id=record.get("reporter_id"),
            latitude=record["latitude"],
            longitude=record["longitude"],
            status=record.get("status") or AlertStatus.PENDING,
            notes=record.get("notes"),
            metadata=record.get("metadata") or {},
            created_at=record.get("created_at") or datetime.now(UTC),
        )
