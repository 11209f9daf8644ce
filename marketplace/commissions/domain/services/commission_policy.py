"""
Commission policy: how much of a vendor's sale the platform keeps.

Shops move between volume tiers (bronze/silver/gold) based on their
average monthly sales; brands and distributors pay a flat rate per
vendor type. Rates are percentages.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Dict

from django.conf import settings

from marketplace.services.base import quantize_money


DEFAULT_SHOP_COMMISSION_TIERS = {
    "bronze": {"min_monthly_sales": Decimal("0"), "rate": Decimal("15")},
    "silver": {"min_monthly_sales": Decimal("50000"), "rate": Decimal("20")},
    "gold": {"min_monthly_sales": Decimal("200000"), "rate": Decimal("25")},
}

DEFAULT_VENDOR_TYPE_COMMISSION = {
    "brand": Decimal("10"),
    "distributor": Decimal("5"),
}

DEFAULT_TIER = "bronze"


@dataclass
class CommissionBreakdown:
    gross_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    vendor_type: str
    commission_tier: str

    def to_dict(self) -> Dict:
        return asdict(self)


def get_shop_tiers() -> Dict[str, Dict]:
    return getattr(settings, "SHOP_COMMISSION_TIERS", DEFAULT_SHOP_COMMISSION_TIERS)


def tier_rate(tier: str) -> Decimal:
    tiers = get_shop_tiers()
    if tier not in tiers:
        raise ValueError(f"Unknown commission tier: {tier}")
    return Decimal(str(tiers[tier]["rate"]))


def determine_commission_tier(average_monthly_sales) -> str:
    """Highest tier whose sales threshold the average reaches."""
    average = Decimal(str(average_monthly_sales))
    ordered = sorted(get_shop_tiers().items(), key=lambda item: Decimal(str(item[1]["min_monthly_sales"])))

    selected = ordered[0][0]
    for tier, config in ordered:
        if average >= Decimal(str(config["min_monthly_sales"])):
            selected = tier
    return selected


def default_commission_rate(vendor_type: str) -> Decimal:
    """Starting rate for a new vendor of the given type."""
    if vendor_type == "shop":
        return tier_rate(DEFAULT_TIER)

    by_type = getattr(settings, "VENDOR_TYPE_COMMISSION", DEFAULT_VENDOR_TYPE_COMMISSION)
    if vendor_type in by_type:
        return Decimal(str(by_type[vendor_type]))
    return Decimal(str(getattr(settings, "DEFAULT_COMMISSION_RATE", Decimal("10"))))


def calculate_commission(vendor, amount) -> CommissionBreakdown:
    """
    Split a vendor's gross sale into platform commission and vendor net.

    Args:
        vendor: object exposing commission_rate, vendor_type and commission_tier
        amount: gross sale amount

    Raises:
        ValueError: if amount is negative
    """
    gross = quantize_money(amount)
    if gross < 0:
        raise ValueError(f"Commission amount cannot be negative: {amount}")

    rate = Decimal(str(vendor.commission_rate))
    commission = quantize_money(gross * rate / Decimal("100"))

    return CommissionBreakdown(
        gross_amount=gross,
        commission_rate=rate,
        commission_amount=commission,
        net_amount=quantize_money(gross - commission),
        vendor_type=vendor.vendor_type,
        commission_tier=vendor.commission_tier or "",
    )
