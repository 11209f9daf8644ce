from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class CommissionRecordedEvent(DomainEvent):
    """Event: platform commission recorded for a vendor order."""

    def __init__(self, commission_id: str, vendor_id: str, order_id: str, commission_amount, net_amount):
        super().__init__(
            event_type="commission.recorded",
            payload={
                "commission_id": commission_id,
                "vendor_id": vendor_id,
                "order_id": order_id,
                "commission_amount": commission_amount,
                "net_amount": net_amount,
            },
        )
