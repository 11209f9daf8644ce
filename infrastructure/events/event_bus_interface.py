import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List

from django.utils import timezone


logger = logging.getLogger(__name__)


class EventBus(ABC):
    """
    Publish/subscribe contract for domain events.

    Handlers receive the full envelope: event_type, occurred_at and payload.
    A handler registered twice for the same event type runs once.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    @abstractmethod
    def publish(self, event_type: str, payload: dict):
        """Publish an event. Must never raise into business logic."""

    @abstractmethod
    def start_listening(self):
        """Begin delivering events to subscribed handlers."""

    def subscribe(self, event_type: str, handler: Callable) -> bool:
        """Register a handler. Returns False when it was already registered."""
        handlers = self._subscribers.setdefault(event_type, [])
        if handler in handlers:
            return False
        handlers.append(handler)
        logger.info(f"Registered handler for event: {event_type}")
        return True

    @property
    def event_types(self) -> List[str]:
        return list(self._subscribers)

    @staticmethod
    def make_envelope(event_type: str, payload: dict) -> dict:
        return {"event_type": event_type, "occurred_at": timezone.now().isoformat(), "payload": payload}

    def dispatch(self, message: dict):
        """Run every handler for the message's type; one failing handler does not stop the rest."""
        event_type = message["event_type"]
        for handler in list(self._subscribers.get(event_type, [])):
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Handler error for {event_type}: {str(e)}")
