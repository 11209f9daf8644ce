from .inventory_service import InventoryProvider
from .routing_service import FulfillmentRoutingService, LocationScore, RoutingResult
from .rule_engine import RoutingDirectives, build_directives, evaluate_condition, resolve_field
from .shipping_quote_service import ShippingQuoteService

__all__ = [
    "FulfillmentRoutingService",
    "InventoryProvider",
    "LocationScore",
    "RoutingDirectives",
    "RoutingResult",
    "ShippingQuoteService",
    "build_directives",
    "evaluate_condition",
    "resolve_field",
]
