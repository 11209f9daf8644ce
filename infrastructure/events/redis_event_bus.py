"""
Redis pub/sub event bus.

Every event type maps to its own channel, `<prefix>.<event_type>`, so
several deployments can share one Redis without seeing each other's
events. Publishing is fire-and-forget: a Redis outage is logged and the
event is dropped. A single daemon thread per process consumes the
subscribed channels and dispatches envelopes to the local handlers.
"""

import json
import logging
import threading
from typing import Callable, Optional

import redis
from django.conf import settings

from .event_bus_interface import EventBus


logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


class RedisEventBus(EventBus):
    """Redis pub/sub implementation of event bus."""

    def __init__(self, redis_url: Optional[str] = None, channel_prefix: Optional[str] = None):
        super().__init__()
        self.redis_url = (
            redis_url
            or getattr(settings, "EVENT_BUS_REDIS_URL", None)
            or getattr(settings, "CELERY_BROKER_URL", None)
            or DEFAULT_REDIS_URL
        )
        self.channel_prefix = channel_prefix or getattr(settings, "EVENT_BUS_CHANNEL_PREFIX", "vendorhub.events")

        try:
            self.redis_client = redis.from_url(self.redis_url)
        except (redis.RedisError, ValueError) as e:
            logger.error(f"Invalid event bus Redis URL {self.redis_url}: {e}")
            self.redis_client = None

        self._pubsub = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def channel_for(self, event_type: str) -> str:
        return f"{self.channel_prefix}.{event_type}"

    def publish(self, event_type: str, payload: dict):
        if not self.redis_client:
            logger.warning(f"Redis client not available. Event {event_type} dropped.")
            return

        message = self.make_envelope(event_type, payload)
        try:
            receivers = self.redis_client.publish(self.channel_for(event_type), json.dumps(message, default=str))
        except redis.RedisError as e:
            logger.error(f"Failed to publish event {event_type}: {str(e)}")
            return

        if receivers:
            logger.info(f"Published event: {event_type} ({receivers} receivers)")
        else:
            logger.warning(f"Published event {event_type} with no listeners")

    def subscribe(self, event_type: str, handler: Callable) -> bool:
        added = super().subscribe(event_type, handler)
        with self._lock:
            if added and self._pubsub is not None:
                try:
                    self._pubsub.subscribe(self.channel_for(event_type))
                except redis.RedisError as e:
                    logger.error(f"Failed to subscribe to {event_type}: {e}")
        return added

    @property
    def is_listening(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_listening(self):
        """Subscribe to every registered event type and consume in a daemon thread."""
        if not self.redis_client or not self.event_types:
            logger.info("Event bus has nothing to listen for")
            return

        with self._lock:
            if self.is_listening:
                return

            channels = [self.channel_for(event_type) for event_type in self.event_types]
            try:
                pubsub = self.redis_client.pubsub(ignore_subscribe_messages=True)
                pubsub.subscribe(*channels)
            except redis.RedisError as e:
                logger.error(f"Event bus could not subscribe to {channels}: {e}")
                return

            self._pubsub = pubsub
            self._thread = threading.Thread(
                target=self._listen, args=(pubsub,), name="vendorhub-event-bus", daemon=True
            )
            self._thread.start()

        logger.info(f"EventBus listening on: {channels}")

    def _listen(self, pubsub):
        try:
            for message in pubsub.listen():
                if message and message.get("type") == "message":
                    self._handle_message(message)
        except redis.RedisError as e:
            logger.error(f"EventBus listener stopped: {e}")
        finally:
            with self._lock:
                if self._pubsub is pubsub:
                    self._pubsub = None

    def _handle_message(self, message: dict):
        try:
            data = json.loads(message["data"])
        except (TypeError, ValueError) as e:
            logger.error(f"Dropping malformed event on {message.get('channel')}: {e}")
            return
        if not isinstance(data, dict) or "event_type" not in data:
            logger.error(f"Dropping event without a type on {message.get('channel')}")
            return
        self.dispatch(data)
