from decimal import Decimal
from unittest.mock import Mock

import pytest

from marketplace.fulfillment.domain.services import scoring
from marketplace.models import FulfillmentLocation


def make_location(**overrides):
    location = Mock(spec=FulfillmentLocation)
    location.latitude = Decimal("40.712800")
    location.longitude = Decimal("-74.006000")
    location.has_coordinates = True
    location.state = "NY"
    location.shipping_zones = ["NY", "NJ"]
    location.fulfillment_rate = Decimal("0.950")
    location.error_rate = Decimal("0.020")
    location.handling_fee_cents = 100
    location.pick_pack_fee_cents = 50
    for key, value in overrides.items():
        setattr(location, key, value)
    return location


@pytest.mark.unit
class TestDistanceScoringUnit:
    def test_haversine_new_york_to_los_angeles(self):
        miles = scoring.haversine_miles(40.7128, -74.0060, 34.0522, -118.2437)

        assert 2440 < miles < 2460

    def test_haversine_same_point(self):
        assert scoring.haversine_miles(40.0, -74.0, 40.0, -74.0) == pytest.approx(0.0)

    @pytest.mark.parametrize(
        "miles,expected",
        [(0, 100), (49.9, 100), (50, 90), (299, 80), (450, 70), (999, 50), (1999, 30), (2500, 10)],
    )
    def test_distance_tiers(self, miles, expected):
        assert scoring.distance_score_for_miles(miles) == expected

    def test_distance_score_with_coordinates(self):
        score, miles = scoring.distance_score(make_location(), {"latitude": 40.73, "longitude": -73.99})

        assert score == 100
        assert miles is not None and miles < 5

    def test_distance_score_same_state_without_coordinates(self):
        location = make_location(has_coordinates=False)

        assert scoring.distance_score(location, {"state": "NY"}) == (85, None)

    def test_distance_score_state_in_shipping_zone(self):
        location = make_location(has_coordinates=False)

        assert scoring.distance_score(location, {"state": "NJ"}) == (70, None)

    def test_distance_score_uncovered_state(self):
        location = make_location(has_coordinates=False)

        assert scoring.distance_score(location, {"state": "TX"}) == (40, None)

    def test_destination_without_coordinates_uses_state(self):
        score, miles = scoring.distance_score(make_location(), {"state": "NY", "latitude": None})

        assert (score, miles) == (85, None)


@pytest.mark.unit
class TestCostAndTimeScoringUnit:
    def test_shipping_cost_grows_with_distance(self):
        assert scoring.shipping_cost_cents(800, 100) == 800
        assert scoring.shipping_cost_cents(800, 50) == 1200
        assert scoring.shipping_cost_cents(800, 10) == 1520

    def test_half_cents_round_up(self):
        # 799 * 1.5 = 1198.5
        assert scoring.shipping_cost_cents(799, 50) == 1199
        assert scoring.base_shipping_cents(799, "express") == 1199
        assert scoring.round_half_up(Decimal("2.5")) == 3
        assert scoring.round_half_up(0.5) == 1

    def test_handling_cost_per_unit(self):
        assert scoring.handling_cost_cents(make_location(), 3) == 250

    @pytest.mark.parametrize("cents,expected", [(499, 100), (500, 90), (1499, 80), (2999, 50), (4999, 30), (5000, 10)])
    def test_cost_tiers(self, cents, expected):
        assert scoring.cost_score(cents) == expected

    def test_estimated_delivery_days(self):
        assert scoring.estimated_delivery_days(24, "standard") == 4
        assert scoring.estimated_delivery_days(12, "express") == 3
        assert scoring.estimated_delivery_days(48, "overnight") == 3
        assert scoring.estimated_delivery_days(24, "unknown") == 4

    @pytest.mark.parametrize("days,expected", [(1, 100), (2, 90), (3, 80), (4, 60), (5, 60), (7, 40), (8, 20)])
    def test_time_tiers(self, days, expected):
        assert scoring.time_score(days) == expected

    def test_base_shipping_by_service_level(self):
        assert scoring.base_shipping_cents(800, "standard") == 800
        assert scoring.base_shipping_cents(800, "express") == 1200
        assert scoring.base_shipping_cents(800, "overnight") == 2000


@pytest.mark.unit
class TestCompositeScoringUnit:
    def test_reliability_score(self):
        # 0.95 * 100 * 0.98
        assert scoring.reliability_score(make_location()) == 93
        # 0.70 * 100 * 0.95 = 66.5
        location = make_location(fulfillment_rate=Decimal("0.700"), error_rate=Decimal("0.050"))
        assert scoring.reliability_score(location) == 67

    def test_inventory_score(self):
        assert scoring.inventory_score(1.0) == 100
        assert scoring.inventory_score(0.5) == 40
        assert scoring.inventory_score(0.53125) == 43
        assert scoring.inventory_score(0) == 0

    def test_total_score_uses_weights(self):
        scores = {"inventory": 100, "distance": 100, "cost": 100, "time": 100, "reliability": 100}

        assert scoring.total_score(scores) == Decimal("100.00")

    def test_total_score_adds_bonus(self):
        scores = {"inventory": 100, "distance": 50, "cost": 90, "time": 80, "reliability": 93}

        # 25 + 10 + 22.5 + 16 + 9.3
        assert scoring.total_score(scores, scoring.DEFAULT_WEIGHTS) == Decimal("82.80")
        assert scoring.total_score(scores, scoring.DEFAULT_WEIGHTS, bonus=Decimal("10")) == Decimal("92.80")
