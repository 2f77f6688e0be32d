from .bus import (
    EventBus,
    Handler,
    InMemoryEventBus,
    RedisEventBus,
    Subscription,
    Topic,
)
from .channels import (
    ALL_CHANNELS,
    CHANNEL_SOS_ALERTS,
    CHANNEL_TRIP_STATUS,
    TRIP_STATUS,
    TripStatusMessage,
)

__all__ = [
    "EventBus",
    "Handler",
    "InMemoryEventBus",
    "RedisEventBus",
    "Subscription",
    "Topic",
    "ALL_CHANNELS",
    "CHANNEL_SOS_ALERTS",
    "CHANNEL_TRIP_STATUS",
    "TRIP_STATUS",
    "TripStatusMessage",
]
