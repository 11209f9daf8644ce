import logging
from typing import List

from .event_bus_interface import EventBus


logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """Synchronous in-process event bus for tests and single-process deployments."""

    def __init__(self):
        super().__init__()
        self.published: List[dict] = []

    def publish(self, event_type: str, payload: dict):
        message = self.make_envelope(event_type, payload)
        self.published.append(message)
        logger.info(f"Published event: {event_type}")
        self.dispatch(message)

    def start_listening(self):
        # Delivery happens inline in publish()
        pass

    def events_of_type(self, event_type: str) -> List[dict]:
        return [message for message in self.published if message["event_type"] == event_type]

    def clear(self):
        self.published = []
