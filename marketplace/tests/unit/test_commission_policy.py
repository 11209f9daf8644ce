from decimal import Decimal
from unittest.mock import Mock

import pytest
from django.test import override_settings

from marketplace.commissions.domain.services.commission_policy import (
    calculate_commission,
    default_commission_rate,
    determine_commission_tier,
    tier_rate,
)
from marketplace.commissions.domain.services.commission_service import previous_months
from marketplace.models import Vendor


@pytest.mark.unit
class TestCommissionPolicyUnit:
    def setup_method(self):
        self.vendor = Mock(spec=Vendor)
        self.vendor.commission_rate = Decimal("15.00")
        self.vendor.vendor_type = "shop"
        self.vendor.commission_tier = "bronze"

    def test_calculate_commission_splits_amount(self):
        breakdown = calculate_commission(self.vendor, Decimal("200.00"))

        assert breakdown.gross_amount == Decimal("200.00")
        assert breakdown.commission_amount == Decimal("30.00")
        assert breakdown.net_amount == Decimal("170.00")
        assert breakdown.commission_tier == "bronze"

    def test_calculate_commission_rounds_half_up(self):
        self.vendor.commission_rate = Decimal("12.50")

        breakdown = calculate_commission(self.vendor, Decimal("10.02"))

        # 1.2525 -> 1.25
        assert breakdown.commission_amount == Decimal("1.25")
        assert breakdown.commission_amount + breakdown.net_amount == breakdown.gross_amount

    def test_calculate_commission_zero_amount(self):
        breakdown = calculate_commission(self.vendor, 0)

        assert breakdown.commission_amount == Decimal("0.00")
        assert breakdown.net_amount == Decimal("0.00")

    def test_calculate_commission_rejects_negative(self):
        with pytest.raises(ValueError):
            calculate_commission(self.vendor, Decimal("-1.00"))

    def test_brand_has_no_tier(self):
        self.vendor.vendor_type = "brand"
        self.vendor.commission_rate = Decimal("10")
        self.vendor.commission_tier = None

        breakdown = calculate_commission(self.vendor, Decimal("50.00"))

        assert breakdown.commission_tier == ""
        assert breakdown.commission_amount == Decimal("5.00")

    @pytest.mark.parametrize(
        "average,expected",
        [
            (Decimal("0"), "bronze"),
            (Decimal("49999.99"), "bronze"),
            (Decimal("50000"), "silver"),
            (Decimal("199999.99"), "silver"),
            (Decimal("200000"), "gold"),
            (Decimal("1000000"), "gold"),
        ],
    )
    def test_determine_commission_tier_thresholds(self, average, expected):
        assert determine_commission_tier(average) == expected

    def test_tier_rates(self):
        assert tier_rate("bronze") == Decimal("15")
        assert tier_rate("silver") == Decimal("20")
        assert tier_rate("gold") == Decimal("25")

    def test_unknown_tier_raises(self):
        with pytest.raises(ValueError):
            tier_rate("platinum")

    def test_default_rates_by_vendor_type(self):
        assert default_commission_rate("shop") == Decimal("15")
        assert default_commission_rate("brand") == Decimal("10")
        assert default_commission_rate("distributor") == Decimal("5")

    @override_settings(VENDOR_TYPE_COMMISSION={}, DEFAULT_COMMISSION_RATE=Decimal("7"))
    def test_default_rate_falls_back_to_platform_default(self):
        assert default_commission_rate("brand") == Decimal("7")


@pytest.mark.unit
class TestPreviousMonthsUnit:
    def test_wraps_year_boundary(self):
        moment = Mock(year=2024, month=2)

        assert previous_months(moment, 3) == [(2024, 2), (2024, 1), (2023, 12)]

    def test_single_month(self):
        moment = Mock(year=2024, month=7)

        assert previous_months(moment, 1) == [(2024, 7)]
