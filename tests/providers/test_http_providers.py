"""Tests for the HTTP pricing and dispatch adapters."""

import httpx
import pytest
import respx
from httpx import Response

from smartline.core.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    NetworkError,
    NotFoundError,
    PromoRejectedError,
    ServiceUnavailableError,
)
from smartline.providers import (
    BackendClient,
    HttpDispatchClient,
    HttpPricingProvider,
    UserRole,
)
from smartline.trip import PaymentMethod, TripRequest, TripStatus

BASE_URL = "http://backend.test/api"


@pytest.fixture
def backend() -> BackendClient:
    return BackendClient(BASE_URL, timeout=2.0, token_provider=lambda: "token-abc")


@pytest.fixture
def pricing(backend) -> HttpPricingProvider:
    return HttpPricingProvider(backend)


@pytest.fixture
def dispatch(backend) -> HttpDispatchClient:
    return HttpDispatchClient(backend)


def trip_record(trip_id: str = "trip-1", status: str = "requested") -> dict:
    return {
        "id": trip_id,
        "status": status,
        "customer_id": "customer-1",
        "driver_id": None,
        "pickup_lat": 30.0444,
        "pickup_lng": 31.2357,
        "pickup_address": "Tahrir Square",
        "dest_lat": 30.0131,
        "dest_lng": 31.2089,
        "dest_address": "Giza Zoo",
        "price": 46.0,
        "distance": 6.0,
        "duration": 12.0,
        "car_type": "comfort",
        "payment_method": "cash",
        "promo_code": None,
    }


@pytest.mark.unit
class TestBackendClientErrors:
    @pytest.mark.parametrize(
        "status,error",
        [
            (401, AuthorizationError),
            (403, AuthorizationError),
            (404, NotFoundError),
            (409, BusinessRuleError),
            (500, ServiceUnavailableError),
            (503, ServiceUnavailableError),
        ],
    )
    async def test_status_mapping(self, backend, status, error):
        async with respx.mock:
            respx.get(f"{BASE_URL}/trips/active").mock(
                return_value=Response(status, json={"error": "nope"})
            )
            with pytest.raises(error):
                await backend.get("/trips/active")

    async def test_business_error_carries_server_message(self, backend):
        async with respx.mock:
            respx.post(f"{BASE_URL}/trips/create").mock(
                return_value=Response(400, json={"error": "You already have an active trip"})
            )
            with pytest.raises(BusinessRuleError, match="already have an active trip"):
                await backend.post("/trips/create", json={})

    async def test_timeout_is_network_error(self, backend):
        async with respx.mock:
            respx.get(f"{BASE_URL}/pricing/settings").mock(
                side_effect=httpx.ConnectTimeout("timed out")
            )
            with pytest.raises(NetworkError, match="timed out"):
                await backend.get("/pricing/settings")

    async def test_connection_error_is_network_error(self, backend):
        async with respx.mock:
            respx.get(f"{BASE_URL}/pricing/settings").mock(
                side_effect=httpx.ConnectError("refused")
            )
            with pytest.raises(NetworkError):
                await backend.get("/pricing/settings")

    async def test_bearer_token_sent(self, backend):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/trips/active").mock(
                return_value=Response(200, json={"trip": None})
            )
            await backend.get("/trips/active")

            assert route.calls.last.request.headers["Authorization"] == "Bearer token-abc"

    async def test_unauthenticated_call_has_no_token(self, backend):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/pricing/settings").mock(
                return_value=Response(200, json={"pricing": []})
            )
            await backend.get("/pricing/settings", auth=False)

            assert "Authorization" not in route.calls.last.request.headers


@pytest.mark.unit
class TestHttpPricingProvider:
    async def test_fetch_tier_configs_skips_malformed_rows(self, pricing):
        async with respx.mock:
            respx.get(f"{BASE_URL}/pricing/settings").mock(
                return_value=Response(
                    200,
                    json={
                        "pricing": [
                            {
                                "service_tier": "comfort",
                                "base_fare": 10,
                                "per_km_rate": 3,
                                "per_min_rate": 0.5,
                                "minimum_trip_price": 15,
                            },
                            {"service_tier": "broken"},
                        ]
                    },
                )
            )
            configs = await pricing.fetch_tier_configs()

        assert [c.tier_id for c in configs] == ["comfort"]

    async def test_validate_promo(self, pricing):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/pricing/promo").mock(
                return_value=Response(
                    200,
                    json={"promo": {"code": "SAVE10", "discount_percent": 10, "discount_max": 5}},
                )
            )
            promo = await pricing.validate_promo("SAVE10")

            assert route.calls.last.request.url.params["code"] == "SAVE10"

        assert promo.discount_percent == 10
        assert promo.max_discount == 5

    @pytest.mark.parametrize("status", [400, 404])
    async def test_rejected_promo(self, pricing, status):
        async with respx.mock:
            respx.get(f"{BASE_URL}/pricing/promo").mock(
                return_value=Response(status, json={"error": "Promo code expired"})
            )
            with pytest.raises(PromoRejectedError, match="Promo code expired"):
                await pricing.validate_promo("OLD")

    async def test_missing_promo_body(self, pricing):
        async with respx.mock:
            respx.get(f"{BASE_URL}/pricing/promo").mock(return_value=Response(200, json={}))
            with pytest.raises(PromoRejectedError):
                await pricing.validate_promo("GHOST")

    async def test_list_available_promos(self, pricing):
        async with respx.mock:
            respx.get(f"{BASE_URL}/pricing/available").mock(
                return_value=Response(
                    200, json={"promos": [{"code": "a", "discount_percent": 5}]}
                )
            )
            promos = await pricing.list_available_promos()

        assert [p.code for p in promos] == ["A"]


@pytest.mark.unit
class TestHttpDispatchClient:
    async def test_create_trip_payload(self, dispatch, pickup, destination):
        request = TripRequest(
            customer_id="customer-1",
            pickup=pickup,
            destination=destination,
            price=46.0,
            distance_km=6.0,
            duration_min=12.0,
            tier_id="comfort",
            payment_method=PaymentMethod.WALLET,
            promo_code="SAVE10",
        )
        async with respx.mock:
            route = respx.post(f"{BASE_URL}/trips/create").mock(
                return_value=Response(200, json={"trip": trip_record()})
            )
            trip = await dispatch.create_trip(request)

            body = route.calls.last.request.read()

        assert trip.id == "trip-1"
        assert trip.status == TripStatus.REQUESTED
        assert b'"car_type":"comfort"' in body.replace(b" ", b"")
        assert b'"promo_code":"SAVE10"' in body.replace(b" ", b"")

    async def test_create_trip_without_record(self, dispatch, pickup, destination):
        request = TripRequest(
            customer_id="c",
            pickup=pickup,
            destination=destination,
            price=20,
            distance_km=1,
            duration_min=2,
            tier_id="saver",
        )
        async with respx.mock:
            respx.post(f"{BASE_URL}/trips/create").mock(return_value=Response(200, json={}))
            with pytest.raises(ServiceUnavailableError):
                await dispatch.create_trip(request)

    @pytest.mark.parametrize(
        "role,path",
        [
            (UserRole.CUSTOMER, "/trips/passenger/history"),
            (UserRole.DRIVER, "/trips/driver/history"),
        ],
    )
    async def test_history_is_role_aware(self, dispatch, role, path):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}{path}").mock(
                return_value=Response(
                    200,
                    json={
                        "trips": [
                            trip_record("t2", "ACCEPTED"),
                            trip_record("t1", "completed"),
                            trip_record("t0", "teleported"),
                        ]
                    },
                )
            )
            trips = await dispatch.trip_history("user-1", role)

            assert route.calls.last.request.url.params["user_id"] == "user-1"

        assert [(t.id, t.status) for t in trips] == [
            ("t2", TripStatus.ACCEPTED),
            ("t1", TripStatus.COMPLETED),
        ]

    async def test_active_trip_not_found(self, dispatch):
        async with respx.mock:
            respx.get(f"{BASE_URL}/trips/active").mock(return_value=Response(404, json={}))
            assert await dispatch.active_trip() is None

    async def test_active_trip_with_unknown_status(self, dispatch):
        async with respx.mock:
            respx.get(f"{BASE_URL}/trips/active").mock(
                return_value=Response(200, json={"trip": trip_record("t9", "teleported")})
            )
            with pytest.raises(ServiceUnavailableError):
                await dispatch.active_trip()

    async def test_create_trip_partial_record(self, dispatch, pickup, destination):
        request = TripRequest(
            customer_id="c",
            pickup=pickup,
            destination=destination,
            price=20,
            distance_km=1,
            duration_min=2,
            tier_id="saver",
        )
        async with respx.mock:
            respx.post(f"{BASE_URL}/trips/create").mock(
                return_value=Response(200, json={"trip": {"status": "requested"}})
            )
            with pytest.raises(ServiceUnavailableError):
                await dispatch.create_trip(request)

    async def test_create_sos_alert(self, dispatch):
        async with respx.mock:
            respx.post(f"{BASE_URL}/sos/create").mock(
                return_value=Response(
                    200,
                    json={
                        "data": {
                            "id": 7,
                            "trip_id": "trip-1",
                            "latitude": 30.0,
                            "longitude": 31.0,
                            "status": "pending",
                        }
                    },
                )
            )
            alert = await dispatch.create_sos_alert(
                latitude=30.0,
                longitude=31.0,
                trip_id="trip-1",
                notes=None,
                metadata={"source": "app_sos_button"},
            )

        assert alert.id == "7"
        assert alert.trip_id == "trip-1"
