from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from smartline.api import create_app
from smartline.geo import RouteResponse
from smartline.pubsub import InMemoryEventBus
from smartline.settings import APISettings, Settings


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def route_resolver() -> AsyncMock:
    resolver = AsyncMock()
    resolver.resolve.return_value = RouteResponse(
        distance_meters=6000, duration_seconds=720, geometry=[(30.0444, 31.2357)]
    )
    return resolver


@pytest.fixture
def app(bus, pricing_provider, route_resolver):
    return create_app(
        bus,
        pricing_provider,
        Settings(api=APISettings(key="test-api-key")),
        route_resolver=route_resolver,
    )


@pytest.fixture
def test_client(app):
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
