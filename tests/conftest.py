import os

# The websocket and fare routes authenticate against this key.
os.environ.setdefault("API_KEY", "test-api-key")

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from smartline.alerts import SOSAlert, get_seen_alert_registry
from smartline.pricing import Promo, TierConfig
from smartline.providers import UserRole
from smartline.trip import Location, Trip, TripStatus
from smartline.trips import (
    InMemorySessionStore,
    RecordingNavigator,
    TripStateMachine,
    UserSession,
)


@pytest.fixture(autouse=True)
def reset_seen_alerts():
    """The seen-alert registry is process wide; isolate tests from each other."""
    get_seen_alert_registry().reset()
    yield
    get_seen_alert_registry().reset()


@pytest.fixture
def pickup() -> Location:
    return Location(lat=30.0444, lng=31.2357, address="Tahrir Square")


@pytest.fixture
def destination() -> Location:
    return Location(lat=30.0131, lng=31.2089, address="Giza Zoo")


@pytest.fixture
def comfort_config() -> TierConfig:
    return TierConfig(
        tier_id="comfort",
        base_fare=10.0,
        per_km_rate=3.0,
        per_min_rate=0.5,
        minimum_trip_price=15.0,
    )


@pytest.fixture
def saver_config() -> TierConfig:
    return TierConfig(
        tier_id="saver",
        base_fare=8.0,
        per_km_rate=2.5,
        per_min_rate=0.4,
        minimum_trip_price=12.0,
    )


@pytest.fixture
def promo_10_capped() -> Promo:
    """10% off, at most 5 off."""
    return Promo(code="SAVE10", discount_percent=10, max_discount=5)


@pytest.fixture
def expired_promo() -> Promo:
    return Promo(
        code="OLD",
        discount_percent=20,
        valid_until=datetime.now(UTC) - timedelta(days=1),
    )


@pytest.fixture
def session() -> UserSession:
    return UserSession(user_id="customer-1", token="token-abc", role=UserRole.CUSTOMER)


@pytest.fixture
def session_store(session: UserSession) -> InMemorySessionStore:
    return InMemorySessionStore(session)


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def machine(navigator: RecordingNavigator) -> TripStateMachine:
    return TripStateMachine(navigator)


@pytest.fixture
def make_trip(pickup: Location, destination: Location):
    def _make(trip_id: str = "trip-1", status: TripStatus = TripStatus.REQUESTED, **kwargs) -> Trip:
        return Trip(
            id=trip_id,
            status=status,
            customer_id=kwargs.pop("customer_id", "customer-1"),
            pickup=pickup,
            destination=destination,
            tier_id=kwargs.pop("tier_id", "comfort"),
            price=kwargs.pop("price", 46.0),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_alert():
    def _make(alert_id: str = "alert-1", **kwargs) -> SOSAlert:
        return SOSAlert(
            id=alert_id,
            trip_id=kwargs.pop("trip_id", "trip-1"),
            latitude=kwargs.pop("latitude", 30.0444),
            longitude=kwargs.pop("longitude", 31.2357),
            **kwargs,
        )

    return _make


@pytest.fixture
def pricing_provider(comfort_config: TierConfig, saver_config: TierConfig) -> AsyncMock:
    provider = AsyncMock()
    provider.fetch_tier_configs.return_value = [comfort_config, saver_config]
    provider.list_available_promos.return_value = []
    return provider


@pytest.fixture
def dispatch_backend() -> AsyncMock:
    backend = AsyncMock()
    backend.trip_history.return_value = []
    backend.active_trip.return_value = None
    return backend
