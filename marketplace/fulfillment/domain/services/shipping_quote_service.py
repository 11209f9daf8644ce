"""
ShippingQuoteService - Checkout Shipping Options

Prices the storefront's smart shipping options from the routing engine,
with a flat fallback price when the order cannot be routed.
"""

from decimal import Decimal
from typing import Dict, List

from django.conf import settings

from marketplace.fulfillment.domain.services.routing_service import FulfillmentRoutingService
from marketplace.fulfillment.domain.services.scoring import SERVICE_LEVEL_MULTIPLIERS, round_half_up
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


SHIPPING_OPTIONS = [
    {"id": "smart-standard", "name": "Standard Shipping", "service_level": "standard"},
    {"id": "smart-express", "name": "Express Shipping", "service_level": "express"},
    {"id": "smart-overnight", "name": "Overnight Shipping", "service_level": "overnight"},
]

PER_ITEM_FALLBACK_CENTS = 100


class ShippingQuoteService(BaseService):
    def __init__(self, routing_service: FulfillmentRoutingService = None):
        super().__init__()
        self.routing_service = routing_service or FulfillmentRoutingService()

    def get_options(self) -> List[Dict]:
        return [dict(option) for option in SHIPPING_OPTIONS]

    def fallback_price(self, service_level: str, item_count: int) -> int:
        base = getattr(settings, "ROUTING_BASE_SHIPPING_CENTS", 799)
        multiplier = SERVICE_LEVEL_MULTIPLIERS.get(service_level, Decimal("1"))
        return round_half_up((base + PER_ITEM_FALLBACK_CENTS * item_count) * multiplier)

    @BaseService.log_performance
    def calculate_price(self, option_id: str, request: Dict) -> ServiceResult[Dict]:
        """
        Price one shipping option for an order.

        Returns:
            ServiceResult with option_id, service_level, price_cents,
            estimated_delivery_days (None on fallback) and source
            ("routing" or "fallback").
        """
        option = next((option for option in SHIPPING_OPTIONS if option["id"] == option_id), None)
        if option is None:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Unknown shipping option: {option_id}")

        service_level = option["service_level"]
        routing = self.routing_service.route_order({**request, "service_level": service_level})

        if routing.ok:
            return service_ok(
                {
                    "option_id": option_id,
                    "service_level": service_level,
                    "price_cents": routing.value.total_estimated_cost_cents,
                    "estimated_delivery_days": routing.value.total_estimated_delivery_days,
                    "source": "routing",
                }
            )

        item_count = sum(int(item.get("quantity") or 0) for item in request.get("items") or [])
        self.logger.warning(f"Routing unavailable for {option_id} quote ({routing.error}), using fallback price")
        return service_ok(
            {
                "option_id": option_id,
                "service_level": service_level,
                "price_cents": self.fallback_price(service_level, item_count),
                "estimated_delivery_days": None,
                "source": "fallback",
            }
        )

    def quote_all(self, request: Dict) -> ServiceResult[List[Dict]]:
        quotes = []
        for option in SHIPPING_OPTIONS:
            result = self.calculate_price(option["id"], request)
            if not result.ok:
                return result
            quotes.append({**result.value, "name": option["name"]})
        return service_ok(quotes)
