from .fulfillment_serializers import (
    FulfillmentLocationSerializer,
    RoutingItemSerializer,
    RoutingRequestSerializer,
    RoutingRuleSerializer,
    ShippingAddressSerializer,
)


__all__ = [
    "FulfillmentLocationSerializer",
    "RoutingItemSerializer",
    "RoutingRequestSerializer",
    "RoutingRuleSerializer",
    "ShippingAddressSerializer",
]
