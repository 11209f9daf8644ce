"""
FulfillmentRoutingService - Order Fulfillment Routing

Picks the fulfillment location(s) an order ships from:

1. Filter active locations that can ship to the destination
2. Apply routing rules (require / exclude / prefer / surcharge / service level)
3. Score each remaining location on inventory, distance, cost, time and reliability
4. Choose the best location with full stock, or split the order greedily
"""

import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings
from django.utils import timezone

from marketplace.fulfillment.api.serializers import (
    FulfillmentLocationSerializer,
    RoutingRequestSerializer,
    RoutingRuleSerializer,
)
from marketplace.fulfillment.domain.models import FulfillmentLocation, RoutingRule
from marketplace.fulfillment.domain.services import scoring
from marketplace.fulfillment.domain.services.inventory_service import InventoryProvider
from marketplace.fulfillment.domain.services.rule_engine import RoutingDirectives, build_directives
from marketplace.infra.observability.metrics import routing_decisions_total, routing_duration, routing_rules_applied_total
from marketplace.infra.observability.tracing import get_tracer
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from marketplace.vendors.domain.services.vendor_service import VendorService


tracer = get_tracer(__name__)

ALGORITHM_VERSION = "1.1.0"


def _first_error(errors) -> str:
    for field_name, messages in errors.items():
        if isinstance(messages, list) and messages:
            message = messages[0]
            if isinstance(message, dict):
                return f"{field_name}: {_first_error(message)}"
            return f"{field_name}: {message}"
        if isinstance(messages, dict):
            return f"{field_name}: {_first_error(messages)}"
        return f"{field_name}: {messages}"
    return "Invalid routing request"


@dataclass
class LocationScore:
    location: FulfillmentLocation
    score: Decimal
    scores: Dict[str, int]
    available: Dict[str, int]
    fully_available: bool
    distance_miles: Optional[float]
    distance_score: int
    estimated_cost_cents: int
    estimated_delivery_days: int
    bonus: Decimal = Decimal("0")

    def to_dict(self) -> Dict:
        return {
            "location_id": str(self.location.id),
            "location_code": self.location.code,
            "location_name": self.location.name,
            "score": self.score,
            "scores": dict(self.scores),
            "bonus": self.bonus,
            "fully_available": self.fully_available,
            "available": dict(self.available),
            "distance_miles": self.distance_miles,
            "estimated_cost_cents": self.estimated_cost_cents,
            "estimated_delivery_days": self.estimated_delivery_days,
        }


@dataclass
class RoutingResult:
    request_id: str
    timestamp: str
    optimal_routing: List[Dict]
    alternative_routings: List[List[Dict]]
    is_split: bool
    service_level: str
    total_estimated_cost_cents: int
    total_estimated_delivery_days: int
    routing_metadata: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "request_id": self.request_id,
            "timestamp": self.timestamp,
            "optimal_routing": self.optimal_routing,
            "alternative_routings": self.alternative_routings,
            "is_split": self.is_split,
            "service_level": self.service_level,
            "total_estimated_cost_cents": self.total_estimated_cost_cents,
            "total_estimated_delivery_days": self.total_estimated_delivery_days,
            "routing_metadata": self.routing_metadata,
        }


class FulfillmentRoutingService(BaseService):
    """
    Service for routing orders to fulfillment locations.
    """

    def __init__(self, inventory_provider: InventoryProvider = None, vendor_service: VendorService = None):
        super().__init__()
        self.inventory_provider = inventory_provider or InventoryProvider()
        self.vendor_service = vendor_service or VendorService()

    @property
    def weights(self) -> Dict[str, float]:
        return getattr(settings, "ROUTING_SCORING_WEIGHTS", scoring.DEFAULT_WEIGHTS)

    @property
    def base_shipping_cents(self) -> int:
        return getattr(settings, "ROUTING_BASE_SHIPPING_CENTS", 799)

    @property
    def max_alternatives(self) -> int:
        return getattr(settings, "ROUTING_MAX_ALTERNATIVES", 3)

    # ------------------------------------------------------------------
    # Request preparation
    # ------------------------------------------------------------------

    def _parse_request(self, request: Dict) -> ServiceResult[Dict]:
        serializer = RoutingRequestSerializer(data=request)
        if not serializer.is_valid():
            return service_err(ErrorCodes.VALIDATION_ERROR, _first_error(serializer.errors))

        data = serializer.validated_data
        return service_ok(
            {
                "order_id": data["order_id"],
                "items": [dict(item) for item in data["items"]],
                "shipping_address": dict(data["shipping_address"] or {}),
                "customer": dict(data["customer"] or {}),
                "service_level": data["service_level"],
                "exclude_locations": set(data["exclude_locations"]),
            }
        )

    def get_eligible_locations(self, request: Dict) -> List[FulfillmentLocation]:
        """Active locations in the destination country with room and coverage for the destination state."""
        address = request["shipping_address"]
        country_code = address.get("country_code") or "US"
        state = address.get("state")
        excluded = request["exclude_locations"]

        locations = FulfillmentLocation.objects.filter(
            is_active=True, country_code=country_code, current_capacity_percent__lt=100
        )
        return [
            location
            for location in locations
            if location.code not in excluded
            and str(location.id) not in excluded
            and not (state and state in (location.excluded_states or []))
        ]

    def _vendor_types(self, items: List[Dict]) -> Dict[str, str]:
        vendors = self.vendor_service.get_vendors_by_ids({item["vendor_id"] for item in items if item.get("vendor_id")})
        return {vendor_id: vendor.vendor_type for vendor_id, vendor in vendors.items()}

    @staticmethod
    def _demand(items: List[Dict]) -> "OrderedDict[str, int]":
        demand: "OrderedDict[str, int]" = OrderedDict()
        for item in items:
            demand[item["variant_id"]] = demand.get(item["variant_id"], 0) + item["quantity"]
        return demand

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def score_location(
        self,
        location: FulfillmentLocation,
        demand: Dict[str, int],
        stock: Dict[str, int],
        address: Dict,
        service_level: str,
        directives: RoutingDirectives,
    ) -> LocationScore:
        location_id = str(location.id)
        available = {variant_id: min(stock.get(variant_id, 0), needed) for variant_id, needed in demand.items()}
        total_needed = sum(demand.values())
        total_available = sum(available.values())
        fraction = total_available / total_needed if total_needed else 0

        distance_score, miles = scoring.distance_score(location, address)
        cost = self._assignment_cost(location, distance_score, total_needed, service_level, directives)
        days = scoring.estimated_delivery_days(location.processing_time_hours, service_level)

        scores = {
            "inventory": scoring.inventory_score(fraction),
            "distance": distance_score,
            "cost": scoring.cost_score(cost),
            "time": scoring.time_score(days),
            "reliability": scoring.reliability_score(location),
        }
        bonus = directives.bonus_for(location_id)

        return LocationScore(
            location=location,
            score=scoring.total_score(scores, self.weights, bonus),
            scores=scores,
            available=available,
            fully_available=total_needed > 0 and total_available == total_needed,
            distance_miles=miles,
            distance_score=distance_score,
            estimated_cost_cents=cost,
            estimated_delivery_days=days,
            bonus=bonus,
        )

    def _assignment_cost(self, location, distance_score: int, quantity: int, service_level: str, directives) -> int:
        base = scoring.base_shipping_cents(self.base_shipping_cents, service_level)
        return (
            scoring.shipping_cost_cents(base, distance_score)
            + scoring.handling_cost_cents(location, quantity)
            + directives.surcharge_for(str(location.id))
        )

    def _score_all(self, request: Dict):
        """Scored candidate locations, best first, plus the directives that shaped them."""
        items = request["items"]
        locations = self.get_eligible_locations(request)
        rules = list(RoutingRule.objects.filter(is_active=True))
        directives = build_directives(rules, request, locations, self._vendor_types(items), timezone.now())
        service_level = directives.service_level or request["service_level"]

        candidates = [location for location in locations if directives.allows(str(location.id))]
        demand = self._demand(items)
        stock = self.inventory_provider.get_stock([str(location.id) for location in candidates], list(demand))

        scored = [
            self.score_location(
                location, demand, stock.get(str(location.id), {}), request["shipping_address"], service_level, directives
            )
            for location in candidates
        ]
        scored.sort(key=lambda s: (s.score, -s.estimated_cost_cents), reverse=True)
        return scored, directives, service_level, len(locations)

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def _single_assignment(self, location_score: LocationScore, items: List[Dict]) -> Dict:
        return {
            "location_id": str(location_score.location.id),
            "location_code": location_score.location.code,
            "vendor_id": str(location_score.location.vendor_id) if location_score.location.vendor_id else None,
            "items": [
                {
                    "variant_id": item["variant_id"],
                    "product_id": item.get("product_id", ""),
                    "vendor_id": item.get("vendor_id", ""),
                    "quantity": item["quantity"],
                }
                for item in items
            ],
            "estimated_cost_cents": location_score.estimated_cost_cents,
            "estimated_delivery_days": location_score.estimated_delivery_days,
            "score": location_score.score,
        }

    def _split_assignments(
        self, scored: List[LocationScore], items: List[Dict], service_level: str, directives: RoutingDirectives
    ) -> Optional[List[Dict]]:
        """
        Greedy split: take the location covering the most remaining units
        (score breaks ties) until every unit is placed. None when stock runs out.
        """
        remaining = self._demand(items)
        item_meta = {item["variant_id"]: item for item in items}
        unused = list(scored)
        assignments = []

        while any(remaining.values()):
            best, best_cover = None, 0
            for location_score in unused:
                cover = sum(min(location_score.available.get(v, 0), needed) for v, needed in remaining.items())
                if cover > best_cover or (cover == best_cover and best is not None and location_score.score > best.score):
                    best, best_cover = location_score, cover
            if best is None or best_cover == 0:
                return None

            unused.remove(best)
            assigned_items = []
            for variant_id, needed in remaining.items():
                take = min(best.available.get(variant_id, 0), needed)
                if take:
                    meta = item_meta[variant_id]
                    assigned_items.append(
                        {
                            "variant_id": variant_id,
                            "product_id": meta.get("product_id", ""),
                            "vendor_id": meta.get("vendor_id", ""),
                            "quantity": take,
                        }
                    )
            for assigned in assigned_items:
                remaining[assigned["variant_id"]] -= assigned["quantity"]

            quantity = sum(assigned["quantity"] for assigned in assigned_items)
            location = best.location
            assignments.append(
                {
                    "location_id": str(location.id),
                    "location_code": location.code,
                    "vendor_id": str(location.vendor_id) if location.vendor_id else None,
                    "items": assigned_items,
                    "estimated_cost_cents": self._assignment_cost(
                        location, best.distance_score, quantity, service_level, directives
                    ),
                    "estimated_delivery_days": best.estimated_delivery_days,
                    "score": best.score,
                }
            )

        return assignments

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def route_order(self, request: Dict) -> ServiceResult[RoutingResult]:
        """
        Route an order to fulfillment locations.

        Args:
            request: order_id, items, shipping_address, customer,
                     service_level and exclude_locations

        Returns:
            ServiceResult with RoutingResult, or NO_FULFILLMENT_LOCATION when
            no combination of locations holds enough stock.
        """
        started = time.monotonic()
        parsed = self._parse_request(request)
        if not parsed.ok:
            routing_decisions_total.labels(outcome="invalid").inc()
            return parsed
        request = parsed.value

        with tracer.start_as_current_span("route_order") as span:
            span.set_attribute("order.id", request["order_id"])
            span.set_attribute("order.item_count", len(request["items"]))

            try:
                scored, directives, service_level, evaluated = self._score_all(request)
            except Exception as e:
                return self.internal_error("route_order", e)

            for action in directives.actions_applied:
                routing_rules_applied_total.labels(action=action).inc()

            fully_available = [location_score for location_score in scored if location_score.fully_available]
            if fully_available:
                optimal = [self._single_assignment(fully_available[0], request["items"])]
                alternatives = [
                    [self._single_assignment(location_score, request["items"])]
                    for location_score in fully_available[1 : 1 + self.max_alternatives]
                ]
            else:
                optimal = self._split_assignments(scored, request["items"], service_level, directives)
                alternatives = []

            elapsed = time.monotonic() - started
            routing_duration.observe(elapsed)

            if not optimal:
                routing_decisions_total.labels(outcome="unfulfillable").inc()
                span.set_attribute("routing.outcome", "unfulfillable")
                self.logger.warning(
                    f"No fulfillment location for order {request['order_id']} "
                    f"({evaluated} locations evaluated, {len(scored)} candidates)"
                )
                return service_err(ErrorCodes.NO_FULFILLMENT_LOCATION, "No fulfillment location can fulfill this order")

            is_split = len(optimal) > 1
            outcome = "split" if is_split else "single"
            routing_decisions_total.labels(outcome=outcome).inc()
            span.set_attribute("routing.outcome", outcome)

        result = RoutingResult(
            request_id=f"routing_{uuid.uuid4().hex[:16]}",
            timestamp=timezone.now().isoformat(),
            optimal_routing=optimal,
            alternative_routings=alternatives,
            is_split=is_split,
            service_level=service_level,
            total_estimated_cost_cents=sum(assignment["estimated_cost_cents"] for assignment in optimal),
            total_estimated_delivery_days=max(assignment["estimated_delivery_days"] for assignment in optimal),
            routing_metadata={
                "algorithm_version": ALGORITHM_VERSION,
                "processing_time_ms": round(elapsed * 1000, 2),
                "locations_evaluated": evaluated,
                "rules_applied": list(directives.rules_applied),
            },
        )
        self.logger.info(
            f"Routed order {request['order_id']} to {', '.join(a['location_code'] for a in optimal)} "
            f"({outcome}, {result.total_estimated_cost_cents} cents)"
        )
        return service_ok(result)

    def get_location_scores(self, request: Dict) -> ServiceResult[List[Dict]]:
        """Every candidate location with its score breakdown, best first."""
        parsed = self._parse_request(request)
        if not parsed.ok:
            return parsed
        try:
            scored, _, _, _ = self._score_all(parsed.value)
        except Exception as e:
            return self.internal_error("get_location_scores", e)
        return service_ok([location_score.to_dict() for location_score in scored])

    def create_rule(self, data: Dict) -> ServiceResult[RoutingRule]:
        serializer = RoutingRuleSerializer(data=data)
        if not serializer.is_valid():
            return service_err(ErrorCodes.VALIDATION_ERROR, _first_error(serializer.errors))
        rule = serializer.save()
        self.logger.info(f"Created routing rule '{rule.name}' ({rule.action}, priority {rule.priority})")
        return service_ok(rule)

    def list_rules(self, active_only: bool = True) -> ServiceResult[List[RoutingRule]]:
        queryset = RoutingRule.objects.all()
        if active_only:
            queryset = queryset.filter(is_active=True)
        return service_ok(list(queryset))

    def create_location(self, data: Dict) -> ServiceResult[FulfillmentLocation]:
        serializer = FulfillmentLocationSerializer(data=data)
        if not serializer.is_valid():
            return service_err(ErrorCodes.VALIDATION_ERROR, _first_error(serializer.errors))
        location = serializer.save()
        self.logger.info(f"Created fulfillment location {location.code} ({location.location_type})")
        return service_ok(location)

    def list_locations(self, vendor_id=None, active_only: bool = True) -> ServiceResult[List[FulfillmentLocation]]:
        queryset = FulfillmentLocation.objects.all()
        if vendor_id:
            queryset = queryset.filter(vendor_id=vendor_id)
        if active_only:
            queryset = queryset.filter(is_active=True)
        return service_ok(list(queryset))
