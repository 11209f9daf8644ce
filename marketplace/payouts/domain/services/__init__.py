from .payout_service import PayoutService

__all__ = [
    "PayoutService",
]
