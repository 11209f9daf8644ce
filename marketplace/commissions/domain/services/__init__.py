from .commission_policy import (
    CommissionBreakdown,
    calculate_commission,
    default_commission_rate,
    determine_commission_tier,
    tier_rate,
)
from .commission_service import CommissionService

__all__ = [
    "CommissionBreakdown",
    "CommissionService",
    "calculate_commission",
    "default_commission_rate",
    "determine_commission_tier",
    "tier_rate",
]
