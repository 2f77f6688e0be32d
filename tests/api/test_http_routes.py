import pytest

from smartline.core.exceptions import (
    AuthorizationError,
    NetworkError,
    PromoRejectedError,
    RouteUnavailableError,
)

AUTH_HEADERS = {"X-API-Key": "test-api-key"}


@pytest.mark.unit
class TestHealth:
    def test_health_no_auth(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["alert_connections"] == 0


@pytest.mark.unit
class TestMetricsEndpoint:
    def test_prometheus_payload(self, test_client):
        response = test_client.get("/metrics")

        assert response.status_code == 200
        assert "smartline_promo_validations_total" in response.text
        assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.unit
class TestFareQuote:
    def test_missing_api_key(self, test_client):
        response = test_client.post("/fares/quote", json={})
        assert response.status_code == 422

    def test_invalid_api_key(self, test_client):
        response = test_client.post("/fares/quote", json={}, headers={"X-API-Key": "wrong"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API key"

    def test_quotes_configured_tiers(self, test_client):
        response = test_client.post(
            "/fares/quote",
            json={"distance_km": 6, "duration_min": 12},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["pricing_fallback"] is False
        prices = {q["tier_id"]: q["price"] for q in data["quotes"]}
        assert prices == {"saver": 27.8, "comfort": 34.0}

    def test_placeholder_route(self, test_client):
        response = test_client.post("/fares/quote", json={}, headers=AUTH_HEADERS)

        quotes = response.json()["quotes"]
        assert all(q["is_estimate"] for q in quotes)

    def test_negative_distance_rejected(self, test_client):
        response = test_client.post(
            "/fares/quote", json={"distance_km": -1}, headers=AUTH_HEADERS
        )
        assert response.status_code == 422

    def test_pricing_failure_falls_back(self, test_client, pricing_provider):
        pricing_provider.fetch_tier_configs.side_effect = NetworkError("down")

        response = test_client.post(
            "/fares/quote", json={"distance_km": 6, "duration_min": 12}, headers=AUTH_HEADERS
        )

        data = response.json()
        assert data["pricing_fallback"] is True
        assert len(data["quotes"]) == 5
        assert {q["price"] for q in data["quotes"]} == {34.0}

    def test_promo_applied(self, test_client, pricing_provider, promo_10_capped):
        pricing_provider.validate_promo.return_value = promo_10_capped

        response = test_client.post(
            "/fares/quote",
            json={"distance_km": 6, "duration_min": 12, "promo_code": "save10"},
            headers=AUTH_HEADERS,
        )

        data = response.json()
        comfort = next(q for q in data["quotes"] if q["tier_id"] == "comfort")
        assert comfort["price"] == 30.6
        assert comfort["old_price"] == 34.0
        assert data["promo"]["code"] == "SAVE10"

    def test_promo_rejected(self, test_client, pricing_provider):
        pricing_provider.validate_promo.side_effect = PromoRejectedError("Promo code expired")

        response = test_client.post(
            "/fares/quote", json={"promo_code": "OLD"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Promo code expired"

    def test_promo_authorization_failure(self, test_client, pricing_provider):
        pricing_provider.validate_promo.side_effect = AuthorizationError("expired")

        response = test_client.post(
            "/fares/quote", json={"promo_code": "SAVE10"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 401

    def test_route_resolved_from_locations(
        self, test_client, route_resolver, pickup, destination
    ):
        response = test_client.post(
            "/fares/quote",
            json={
                "pickup": pickup.model_dump(mode="json"),
                "destination": destination.model_dump(mode="json"),
            },
            headers=AUTH_HEADERS,
        )

        data = response.json()
        route_resolver.resolve.assert_awaited_once_with(pickup, destination)
        comfort = next(q for q in data["quotes"] if q["tier_id"] == "comfort")
        assert comfort["price"] == 34.0
        assert comfort["is_estimate"] is False
        assert data["route_error"] is None

    def test_explicit_route_figures_skip_lookup(
        self, test_client, route_resolver, pickup, destination
    ):
        test_client.post(
            "/fares/quote",
            json={
                "distance_km": 6,
                "duration_min": 12,
                "pickup": pickup.model_dump(mode="json"),
                "destination": destination.model_dump(mode="json"),
            },
            headers=AUTH_HEADERS,
        )

        route_resolver.resolve.assert_not_awaited()

    def test_unavailable_route_falls_back_to_estimate(
        self, test_client, route_resolver, pickup, destination
    ):
        route_resolver.resolve.side_effect = RouteUnavailableError(
            "Failed to calculate route. Please try again."
        )

        response = test_client.post(
            "/fares/quote",
            json={
                "pickup": pickup.model_dump(mode="json"),
                "destination": destination.model_dump(mode="json"),
            },
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["route_error"] == "Failed to calculate route. Please try again."
        assert all(q["is_estimate"] for q in data["quotes"])
