from dataclasses import dataclass
from typing import Dict, List

from .base import DomainEvent


@dataclass
class OrderPlacedEvent(DomainEvent):
    """Event: customer order placed in the host commerce framework."""

    def __init__(self, order_id: str, cart_id: str, items: List[Dict]):
        super().__init__(
            event_type="order.placed",
            payload={"order_id": order_id, "cart_id": cart_id, "items": items},
        )


@dataclass
class OrderCompletedEvent(DomainEvent):
    """Event: customer order completed (paid and delivered)."""

    def __init__(self, order_id: str):
        super().__init__(event_type="order.completed", payload={"order_id": order_id})
