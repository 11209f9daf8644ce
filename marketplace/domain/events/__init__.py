from .base import DomainEvent
from .commission_events import CommissionRecordedEvent
from .order_events import OrderCompletedEvent, OrderPlacedEvent
from .payout_events import PayoutCreatedEvent, PayoutFailedEvent, PayoutProcessedEvent
from .vendor_events import VendorCreatedEvent, VendorOrderCreatedEvent, VendorOrderStatusChangedEvent


__all__ = [
    "DomainEvent",
    "OrderPlacedEvent",
    "OrderCompletedEvent",
    "VendorCreatedEvent",
    "VendorOrderCreatedEvent",
    "VendorOrderStatusChangedEvent",
    "CommissionRecordedEvent",
    "PayoutCreatedEvent",
    "PayoutProcessedEvent",
    "PayoutFailedEvent",
]
