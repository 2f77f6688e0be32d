"""Service entry point: fare quotes, metrics and the SOS alert relay."""

import logging

import uvicorn
from redis.asyncio import Redis

from smartline.alerts import SOS_ALERTS
from smartline.api import create_app
from smartline.providers import BackendClient, HttpPricingProvider
from smartline.pubsub import TRIP_STATUS, RedisEventBus
from smartline.ride_logging import setup_logging
from smartline.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_async_redis_client(settings: Settings) -> "Redis[str]":
    """Create async Redis client for the event bus."""
    return Redis(
        host=settings.redis.host,
        port=settings.redis.port,
        db=settings.redis.db,
        password=settings.redis.password or None,
        ssl=settings.redis.ssl,
        decode_responses=True,
    )


def main() -> None:
    """Main entry point - wires the backend adapters and runs the API."""
    settings = get_settings()

    setup_logging(settings.log)

    logger.info("Starting Smartline trip engine service...")

    backend = BackendClient(
        settings.backend.base_url,
        timeout=settings.backend.timeout_seconds,
        token_provider=lambda: settings.backend.service_token,
    )
    bus = RedisEventBus(create_async_redis_client(settings), [SOS_ALERTS, TRIP_STATUS])

    app = create_app(bus, HttpPricingProvider(backend), settings)

    logger.info(f"Starting Smartline trip engine service on port {settings.api.port}")
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
