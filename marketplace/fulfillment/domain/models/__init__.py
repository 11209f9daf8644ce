from .location import FulfillmentLocation, LocationInventory
from .routing_rule import RoutingRule


__all__ = ["FulfillmentLocation", "LocationInventory", "RoutingRule"]
