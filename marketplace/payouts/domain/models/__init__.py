from .payout import Payout, PayoutAdjustment


__all__ = ["Payout", "PayoutAdjustment"]
