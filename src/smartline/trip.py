"""Trip lifecycle model and status transition rules."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from smartline.core.exceptions import StateError


class TripStatus(str, Enum):
    """Trip lifecycle statuses as emitted by the dispatch backend."""

    REQUESTED = "requested"
    ACCEPTED = "accepted"
    ARRIVED = "arrived"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})

# Statuses a trip can be resumed from, in lifecycle order. Membership only:
# when several trips are active, history order decides (select_active_trip).
NON_TERMINAL_STATUSES: tuple[TripStatus, ...] = (
    TripStatus.REQUESTED,
    TripStatus.ACCEPTED,
    TripStatus.ARRIVED,
    TripStatus.STARTED,
)

VALID_TRANSITIONS: dict[TripStatus, set[TripStatus]] = {
    TripStatus.REQUESTED: {TripStatus.ACCEPTED, TripStatus.CANCELLED},
    TripStatus.ACCEPTED: {TripStatus.ARRIVED, TripStatus.CANCELLED},
    TripStatus.ARRIVED: {TripStatus.STARTED, TripStatus.CANCELLED},
    TripStatus.STARTED: {TripStatus.COMPLETED, TripStatus.CANCELLED},
    TripStatus.COMPLETED: set(),
    TripStatus.CANCELLED: set(),
}


class PaymentMethod(str, Enum):
    CASH = "cash"
    WALLET = "wallet"


class Location(BaseModel):
    """A point with an optional human-readable address."""

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    address: str = ""

    def as_lng_lat(self) -> tuple[float, float]:
        return (self.lng, self.lat)


class TripRequest(BaseModel):
    """Trip-creation payload sent to the dispatch backend."""

    customer_id: str
    pickup: Location
    destination: Location
    price: float = Field(ge=0)
    distance_km: float = Field(ge=0)
    duration_min: float = Field(ge=0)
    tier_id: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    promo_code: str | None = None

    def to_payload(self) -> dict:
        """Wire format expected by POST /trips/create."""
        return {
            "customer_id": self.customer_id,
            "pickup_lat": self.pickup.lat,
            "pickup_lng": self.pickup.lng,
            "pickup_address": self.pickup.address,
            "dest_lat": self.destination.lat,
            "dest_lng": self.destination.lng,
            "dest_address": self.destination.address,
            "price": self.price,
            "distance": self.distance_km,
            "duration": self.duration_min,
            "car_type": self.tier_id,
            "payment_method": self.payment_method.value,
            "promo_code": self.promo_code,
        }


class Trip(BaseModel):
    """A ride request and its current lifecycle status."""

    id: str
    status: TripStatus = TripStatus.REQUESTED
    customer_id: str
    driver_id: str | None = None
    pickup: Location | None = None
    destination: Location | None = None
    tier_id: str | None = None
    price: float | None = None
    distance_km: float | None = None
    duration_min: float | None = None
    payment_method: PaymentMethod | None = None
    promo_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    @classmethod
    def from_record(cls, record: dict) -> "Trip":
        """Build a Trip from a dispatch backend row."""
        pickup = None
        if record.get("pickup_lat") is not None and record.get("pickup_lng") is not None:
            pickup = Location(
                lat=record["pickup_lat"],
                lng=record["pickup_lng"],
                address=record.get("pickup_address") or "",
            )
        destination = None
        if record.get("dest_lat") is not None and record.get("dest_lng") is not None:
            destination = Location(
                lat=record["dest_lat"],
                lng=record["dest_lng"],
                address=record.get("dest_address") or "",
            )
        return cls(
            id=str(record["id"]),
            status=record.get("status", TripStatus.REQUESTED),
            customer_id=str(record.get("customer_id", "")),
            driver_id=record.get("driver_id"),
            pickup=pickup,
            destination=destination,
            tier_id=record.get("car_type"),
            price=record.get("price"),
            distance_km=record.get("distance"),
            duration_min=record.get("duration"),
            payment_method=record.get("payment_method"),
            promo_code=record.get("promo_code"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )

    def transition_to(self, new_status: TripStatus, driver_id: str | None = None) -> None:
        """Apply a dispatch status change with validation."""
        if self.status.is_terminal:
            raise StateError(f"Cannot transition from terminal status {self.status.value}")

        if new_status not in VALID_TRANSITIONS[self.status]:
            raise StateError(
                f"Invalid transition from {self.status.value} to {new_status.value}"
            )

        if new_status == TripStatus.ACCEPTED:
            if driver_id is None and self.driver_id is None:
                raise StateError("Accepted trip requires a driver")
            self.driver_id = driver_id or self.driver_id

        self.status = new_status
        self.updated_at = datetime.now(UTC)
