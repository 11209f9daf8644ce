import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict

from django.utils import timezone


def to_event_value(value: Any) -> Any:
    """Convert Decimals, UUIDs and dates so payloads survive JSON transport."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_event_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_event_value(item) for item in value]
    return value


@dataclass
class DomainEvent:
    """Base class for all domain events."""

    event_type: str
    occurred_at: datetime = field(default_factory=timezone.now)
    payload: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.payload = to_event_value(self.payload)

    def to_dict(self) -> dict:
        return {"event_type": self.event_type, "occurred_at": self.occurred_at.isoformat(), "payload": self.payload}

    def publish(self, event_bus):
        event_bus.publish(self.event_type, self.payload)
