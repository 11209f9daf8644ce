from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class PayoutCreatedEvent(DomainEvent):
    """Event: payout drafted for a vendor."""

    def __init__(self, payout_id: str, vendor_id: str, amount, commission_count: int):
        super().__init__(
            event_type="payout.created",
            payload={
                "payout_id": payout_id,
                "vendor_id": vendor_id,
                "amount": amount,
                "commission_count": commission_count,
            },
        )


@dataclass
class PayoutProcessedEvent(DomainEvent):
    """Event: payout transfer submitted to the payment provider."""

    def __init__(self, payout_id: str, vendor_id: str, amount, transfer_id: str):
        super().__init__(
            event_type="payout.processed",
            payload={"payout_id": payout_id, "vendor_id": vendor_id, "amount": amount, "transfer_id": transfer_id},
        )


@dataclass
class PayoutFailedEvent(DomainEvent):
    """Event: payout transfer rejected."""

    def __init__(self, payout_id: str, vendor_id: str, reason: str):
        super().__init__(
            event_type="payout.failed",
            payload={"payout_id": payout_id, "vendor_id": vendor_id, "reason": reason},
        )
