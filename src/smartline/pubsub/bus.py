"""Backend-agnostic publish/subscribe over typed topics."""

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel
from redis.exceptions import ConnectionError as RedisConnectionError

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)

Handler = Callable[[E], Awaitable[None] | None]


@dataclass(frozen=True)
class Topic(Generic[E]):
    """A named channel carrying one event model."""

    name: str
    event_type: type[E]

    def encode(self, event: E) -> str:
        return event.model_dump_json()

    def decode(self, raw: str | bytes) -> E:
        return self.event_type.model_validate_json(raw)


class Subscription:
    """Handle returned by subscribe. Unsubscribing is idempotent."""

    def __init__(self, topic: Topic[Any], handler: Handler[Any], on_close: Callable[["Subscription"], None]):
        self.topic = topic
        self.handler = handler
        self._on_close = on_close
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._on_close(self)


class EventBus(Protocol):
    def subscribe(self, topic: Topic[E], handler: Handler[E]) -> Subscription: ...

    async def publish(self, topic: Topic[E], event: E) -> None: ...


async def deliver(subscription: Subscription, event: BaseModel) -> None:
    """Run one subscriber's handler. A failing subscriber never blocks the others."""
    if not subscription.active:
        return
    try:
        result = subscription.handler(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception(f"Subscriber on {subscription.topic.name} failed to handle event")


class _SubscriberTable:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscription]] = {}

    def add(self, topic: Topic[Any], handler: Handler[Any]) -> Subscription:
        subscription = Subscription(topic, handler, self.remove)
        self._subscribers.setdefault(topic.name, []).append(subscription)
        return subscription

    def remove(self, subscription: Subscription) -> None:
        subs = self._subscribers.get(subscription.topic.name, [])
        if subscription in subs:
            subs.remove(subscription)

    def for_topic(self, name: str) -> list[Subscription]:
        return list(self._subscribers.get(name, []))

    def count(self, name: str) -> int:
        return len(self._subscribers.get(name, []))

    async def fan_out(self, name: str, event: BaseModel) -> None:
        for subscription in self.for_topic(name):
            await deliver(subscription, event)


class InMemoryEventBus:
    """In-process bus: every subscriber of a topic receives every event."""

    def __init__(self) -> None:
        self._table = _SubscriberTable()

    def subscribe(self, topic: Topic[E], handler: Handler[E]) -> Subscription:
        return self._table.add(topic, handler)

    def subscriber_count(self, topic: Topic[Any]) -> int:
        return self._table.count(topic.name)

    async def publish(self, topic: Topic[E], event: E) -> None:
        await self._table.fan_out(topic.name, event)


class RedisEventBus:
    """Redis pub/sub backed bus.

    Topics are declared up front; one listener task subscribes to all of
    their channels and fans each message out to the local subscribers.
    """

    def __init__(self, redis_client, topics: list[Topic[Any]], reconnect_delay: float = 5.0):
        self.redis_client = redis_client
        self._topics = {topic.name: topic for topic in topics}
        self._table = _SubscriberTable()
        self.reconnect_delay = reconnect_delay
        self.task: asyncio.Task[None] | None = None
        self._subscribed = asyncio.Event()

    def _check_topic(self, topic: Topic[Any]) -> None:
        if topic.name not in self._topics:
            raise ValueError(
                f"Topic '{topic.name}' is not declared. Declared topics: {list(self._topics)}"
            )

    def subscribe(self, topic: Topic[E], handler: Handler[E]) -> Subscription:
        self._check_topic(topic)
        return self._table.add(topic, handler)

    def subscriber_count(self, topic: Topic[Any]) -> int:
        return self._table.count(topic.name)

    async def publish(self, topic: Topic[E], event: E) -> None:
        self._check_topic(topic)
        try:
            await self.redis_client.publish(topic.name, topic.encode(event))
        except RedisConnectionError as e:
            logger.error(f"Failed to publish to channel {topic.name}: {e}")
            raise

    async def start(self) -> None:
        """Start listening and wait until the channel subscription is established."""
        self.task = asyncio.create_task(self._listen())
        try:
            await asyncio.wait_for(self._subscribed.wait(), timeout=10.0)
            logger.info(f"Redis event bus subscribed to {list(self._topics)}")
        except TimeoutError:
            logger.warning("Redis subscription timeout - proceeding anyway")

    async def stop(self) -> None:
        if self.task:
            self.task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.task
            self.task = None

    async def _listen(self) -> None:
        while True:
            try:
                pubsub = self.redis_client.pubsub()
                await pubsub.subscribe(*self._topics)
                self._subscribed.set()

                async for message in pubsub.listen():
                    if message.get("type") != "message":
                        continue
                    await self._dispatch(message)
            except asyncio.CancelledError:
                raise
            except RedisConnectionError as e:
                logger.error(f"Redis connection lost: {e}, reconnecting in {self.reconnect_delay}s")
                await asyncio.sleep(self.reconnect_delay)

    async def _dispatch(self, message: dict[str, Any]) -> None:
        channel = message.get("channel")
        if isinstance(channel, bytes):
            channel = channel.decode()
        topic = self._topics.get(channel)
        if topic is None:
            return
        try:
            event = topic.decode(message["data"])
        except ValueError as e:
            logger.warning(f"Dropping undecodable message on {channel}: {e}")
            return
        await self._table.fan_out(topic.name, event)
