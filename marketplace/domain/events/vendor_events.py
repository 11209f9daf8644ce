from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class VendorCreatedEvent(DomainEvent):
    """Event: vendor account created."""

    def __init__(self, vendor_id: str, vendor_type: str, commission_rate):
        super().__init__(
            event_type="vendor.created",
            payload={"vendor_id": vendor_id, "vendor_type": vendor_type, "commission_rate": commission_rate},
        )


@dataclass
class VendorOrderCreatedEvent(DomainEvent):
    """Event: a customer order was split off to a vendor."""

    def __init__(self, vendor_order_id: str, order_id: str, vendor_id: str, subtotal, vendor_payout):
        super().__init__(
            event_type="vendor_order.created",
            payload={
                "vendor_order_id": vendor_order_id,
                "order_id": order_id,
                "vendor_id": vendor_id,
                "subtotal": subtotal,
                "vendor_payout": vendor_payout,
            },
        )


@dataclass
class VendorOrderStatusChangedEvent(DomainEvent):
    """Event: vendor order moved through its fulfillment lifecycle."""

    def __init__(self, vendor_order_id: str, order_id: str, old_status: str, new_status: str):
        super().__init__(
            event_type="vendor_order.status_changed",
            payload={
                "vendor_order_id": vendor_order_id,
                "order_id": order_id,
                "old_status": old_status,
                "new_status": new_status,
            },
        )
