"""FastAPI application factory for the trip engine service."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from smartline import __version__
from smartline.alerts import SOS_ALERTS
from smartline.api.models import HealthResponse
from smartline.api.routes import fares, metrics
from smartline.api.websocket import AlertRelay, ConnectionManager
from smartline.api.websocket import router as websocket_router
from smartline.geo import RouteResolver, create_route_resolver
from smartline.pricing import FareCalculator, PromoEvaluator
from smartline.providers import PricingProvider
from smartline.pubsub import EventBus, RedisEventBus
from smartline.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(
    bus: EventBus,
    pricing_provider: PricingProvider,
    settings: Settings | None = None,
    route_resolver: RouteResolver | None = None,
) -> FastAPI:
    """Create FastAPI application with injected dependencies.

    Args:
        bus: Event bus carrying the SOS alert feed
        pricing_provider: Source of tier configs and promo validation
        settings: Service settings (loaded from the environment when omitted)
        route_resolver: Directions lookup for quotes by pickup/destination
            (built from settings.routing when omitted)
    """
    settings = settings or get_settings()
    connection_manager = ConnectionManager()
    relay = AlertRelay(connection_manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        """Manage application startup and shutdown."""
        subscription = bus.subscribe(SOS_ALERTS, relay.handle)
        if isinstance(bus, RedisEventBus):
            await bus.start()
        logger.info("Alert relay started")
        yield
        subscription.unsubscribe()
        if isinstance(bus, RedisEventBus):
            await bus.stop()

    app = FastAPI(
        title="Smartline Trip Engine API",
        version=__version__,
        description="Fare quotes, metrics and real-time SOS alerts for operations",
        lifespan=lifespan,
    )

    # Set core dependencies immediately (not in lifespan) so they're available for testing
    app.state.settings = settings
    app.state.bus = bus
    app.state.pricing_provider = pricing_provider
    app.state.promo_evaluator = PromoEvaluator(pricing_provider)
    app.state.fare_calculator = FareCalculator()
    app.state.route_resolver = route_resolver or create_route_resolver(settings.routing)
    app.state.connection_manager = connection_manager
    app.state.alert_relay = relay

    app.include_router(fares.router, prefix="/fares", tags=["fares"])
    app.include_router(metrics.router, prefix="/metrics", tags=["metrics"])
    app.include_router(websocket_router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint for monitoring (unauthenticated for infrastructure)."""
        return HealthResponse(
            version=__version__,
            alert_connections=len(connection_manager.active_connections),
        )

    return app
