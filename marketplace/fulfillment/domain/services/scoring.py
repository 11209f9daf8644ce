"""
Location scoring functions.

All scores are on a 0-100 scale; costs are in cents. These functions are
pure so the routing service can be tested without a database.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple


EARTH_RADIUS_MILES = 3959

TRANSIT_DAYS = {
    "standard": 3,
    "express": 2,
    "overnight": 1,
}

SERVICE_LEVEL_MULTIPLIERS = {
    "standard": Decimal("1"),
    "express": Decimal("1.5"),
    "overnight": Decimal("2.5"),
}

DEFAULT_WEIGHTS = {
    "inventory": 0.25,
    "distance": 0.20,
    "cost": 0.25,
    "time": 0.20,
    "reliability": 0.10,
}

# (upper bound exclusive, score)
DISTANCE_TIERS = [(50, 100), (150, 90), (300, 80), (500, 70), (1000, 50), (2000, 30)]
COST_TIERS = [(500, 100), (1000, 90), (1500, 80), (2000, 70), (3000, 50), (5000, 30)]
# (upper bound inclusive, score)
TIME_TIERS = [(1, 100), (2, 90), (3, 80), (5, 60), (7, 40)]


def round_half_up(value) -> int:
    """Round to the nearest integer with halves going up (1198.5 -> 1199)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _tier(value, tiers, floor, inclusive=False):
    for bound, score in tiers:
        if value <= bound if inclusive else value < bound:
            return score
    return floor


def haversine_miles(lat1, lon1, lat2, lon2) -> float:
    lat1, lon1, lat2, lon2 = (math.radians(float(v)) for v in (lat1, lon1, lat2, lon2))
    a = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_score_for_miles(miles: float) -> int:
    return _tier(miles, DISTANCE_TIERS, 10)


def distance_score(location, address: Dict) -> Tuple[int, Optional[float]]:
    """
    Score proximity of a location to the destination.

    Returns (score, miles); miles is None when either side lacks coordinates
    and the score falls back to state coverage.
    """
    latitude, longitude = address.get("latitude"), address.get("longitude")
    if location.has_coordinates and latitude is not None and longitude is not None:
        miles = haversine_miles(location.latitude, location.longitude, latitude, longitude)
        return distance_score_for_miles(miles), round(miles, 1)

    state = address.get("state")
    if state and state == location.state:
        return 85, None
    if state and state in (location.shipping_zones or []):
        return 70, None
    return 40, None


def shipping_cost_cents(base_cents: int, distance_score_value: int) -> int:
    return round_half_up(Decimal(base_cents) * (1 + Decimal(100 - distance_score_value) / 100))


def handling_cost_cents(location, quantity: int) -> int:
    return location.handling_fee_cents + location.pick_pack_fee_cents * quantity


def cost_score(cost_cents: int) -> int:
    return _tier(cost_cents, COST_TIERS, 10)


def estimated_delivery_days(processing_hours: int, service_level: str = "standard") -> int:
    return math.ceil(processing_hours / 24) + TRANSIT_DAYS.get(service_level, TRANSIT_DAYS["standard"])


def time_score(days: int) -> int:
    return _tier(days, TIME_TIERS, 20, inclusive=True)


def reliability_score(location) -> int:
    fulfillment_rate = Decimal(str(location.fulfillment_rate))
    error_rate = Decimal(str(location.error_rate))
    return round_half_up(fulfillment_rate * 100 * (1 - error_rate))


def inventory_score(available_fraction: float) -> int:
    if available_fraction >= 1:
        return 100
    if available_fraction <= 0:
        return 0
    return round_half_up(Decimal(str(available_fraction)) * 80)


def total_score(scores: Dict[str, int], weights: Optional[Dict[str, float]] = None, bonus=0) -> Decimal:
    weights = weights or DEFAULT_WEIGHTS
    weighted = sum(Decimal(str(weights.get(name, 0))) * Decimal(score) for name, score in scores.items())
    return (weighted + Decimal(str(bonus))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def base_shipping_cents(base_cents: int, service_level: str = "standard") -> int:
    """Base shipping rate scaled by the service level (express 1.5x, overnight 2.5x)."""
    return round_half_up(Decimal(base_cents) * SERVICE_LEVEL_MULTIPLIERS.get(service_level, Decimal("1")))
