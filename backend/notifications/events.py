"""
In-process publish/subscribe for live admin observers, backed by the
Channels channel layer.

Each topic is a channel-layer group. A subscriber gets its own channel, joins
the groups it cares about for as long as it is connected, and leaves them on
disconnect. Delivery is at-most-once and best-effort: nothing is queued for
topics without subscribers and nothing is replayed to late joiners. A
reconnecting client re-fetches current state over the REST API.
"""
import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from asgiref.sync import async_to_sync
from channels.layers import DEFAULT_CHANNEL_LAYER, get_channel_layer
from django.apps import apps
from django.db import transaction

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
ORDER_UPDATED = "order.updated"
ADMIN_NOTIFICATION_CREATED = "admin.notification.created"

ADMIN_TOPICS = (ORDER_CREATED, ORDER_UPDATED, ADMIN_NOTIFICATION_CREATED)

GROUP_PREFIX = "admin_events."
MESSAGE_TYPE = "broadcast.event"


def convert_complex_types_to_str(data):
    """
    Recursively converts UUID, Decimal and datetime values to strings so the
    payload survives both msgpack (redis layer) and JSON encoding.
    """
    if isinstance(data, dict):
        return {str(k): convert_complex_types_to_str(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [convert_complex_types_to_str(elem) for elem in data]
    elif isinstance(data, (UUID, Decimal)):
        return str(data)
    elif isinstance(data, (datetime, date)):
        return data.isoformat()
    return data


@dataclass(frozen=True)
class Event:
    topic: str
    payload: Dict[str, Any]


class Subscription:
    """A connected subscriber's view of the bus. Only valid inside EventBroadcaster.subscribe()."""

    def __init__(self, channel_layer, channel_name: str, topics: Tuple[str, ...]):
        self.channel_layer = channel_layer
        self.channel_name = channel_name
        self.topics = topics

    async def receive(self, timeout: Optional[float] = None) -> Optional[Event]:
        """
        Waits for the next event. Returns None if nothing arrives within timeout.
        """
        try:
            message = await asyncio.wait_for(
                self.channel_layer.receive(self.channel_name), timeout
            )
        except asyncio.TimeoutError:
            return None
        return Event(topic=message["topic"], payload=message.get("payload") or {})

    def __aiter__(self):
        return self

    async def __anext__(self) -> Event:
        return await self.receive()


class EventBroadcaster:
    """
    Fans out order lifecycle events to connected admin observers.

    Build one per process (NotificationsConfig.ready does) and pass it to the
    services that publish. Tests construct their own around a fresh
    InMemoryChannelLayer.
    """

    def __init__(self, channel_layer=None, alias: str = DEFAULT_CHANNEL_LAYER):
        self._channel_layer = channel_layer
        self._alias = alias
        self._lock = threading.Lock()
        self._subscriber_count = 0

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer(self._alias)
        return self._channel_layer

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return self._subscriber_count

    @staticmethod
    def group_name(topic: str) -> str:
        return f"{GROUP_PREFIX}{topic}"

    async def apublish(self, topic: str, payload: Dict[str, Any]) -> None:
        await self.channel_layer.group_send(
            self.group_name(topic),
            {
                "type": MESSAGE_TYPE,
                "topic": topic,
                "payload": convert_complex_types_to_str(payload),
            },
        )

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        """
        Publishes from synchronous code. Broadcast failures are logged and
        never propagate to the request that produced the event.
        """
        try:
            async_to_sync(self.apublish)(topic, payload)
            logger.debug(f"Published {topic} event")
        except Exception as e:
            logger.error(f"Error publishing {topic} event: {e}", exc_info=True)

    def publish_on_commit(self, topic: str, payload: Dict[str, Any]) -> None:
        """Publishes once the surrounding transaction commits (immediately outside one)."""
        transaction.on_commit(lambda: self.publish(topic, payload))

    @asynccontextmanager
    async def subscribe(self, *topics: str):
        topics = tuple(topics) or ADMIN_TOPICS
        layer = self.channel_layer
        channel_name = await layer.new_channel(GROUP_PREFIX.rstrip("."))

        joined = []
        try:
            for topic in topics:
                await layer.group_add(self.group_name(topic), channel_name)
                joined.append(topic)
            self._adjust_subscribers(1)
            try:
                yield Subscription(layer, channel_name, topics)
            finally:
                self._adjust_subscribers(-1)
        finally:
            for topic in joined:
                await layer.group_discard(self.group_name(topic), channel_name)

    def _adjust_subscribers(self, delta: int) -> None:
        with self._lock:
            self._subscriber_count += delta
            count = self._subscriber_count
        logger.info(f"Admin event subscribers: {count}")


def get_broadcaster() -> EventBroadcaster:
    """The process-wide broadcaster built at startup."""
    return apps.get_app_config("notifications").broadcaster
