"""
Routing rule evaluation.

Rules are evaluated against one context per order item:

    {"product": item, "item": item, "order": order_ctx,
     "customer": customer, "destination": address}

A rule matches the order when any item context satisfies its condition.
Matched rules are folded into RoutingDirectives, which the routing service
applies to the candidate locations.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Set

from django.conf import settings


logger = logging.getLogger(__name__)


def resolve_field(context: Any, field_path: str) -> Any:
    """Dotted lookup through dicts and attributes. Missing segments give None."""
    current = context
    for part in (field_path or "").split("."):
        if current is None or not part:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def _to_decimal(value) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None


def _equals(actual, expected) -> bool:
    if actual == expected:
        return True
    left, right = _to_decimal(actual), _to_decimal(expected)
    if left is not None and right is not None:
        return left == right
    if isinstance(actual, str) and isinstance(expected, str):
        return actual.lower() == expected.lower()
    return False


def evaluate_condition(operator: str, actual: Any, expected: Any) -> bool:
    if actual is None:
        return operator in ("not_equals", "not_in")

    if operator == "equals":
        return _equals(actual, expected)
    if operator == "not_equals":
        return not _equals(actual, expected)

    if operator == "contains":
        if isinstance(actual, str):
            return str(expected).lower() in actual.lower()
        if isinstance(actual, (list, tuple, set)):
            return any(_equals(element, expected) for element in actual)
        if isinstance(actual, dict):
            return expected in actual
        return False

    if operator in ("greater_than", "less_than"):
        left, right = _to_decimal(actual), _to_decimal(expected)
        if left is None or right is None:
            return False
        return left > right if operator == "greater_than" else left < right

    if operator in ("in", "not_in"):
        if not isinstance(expected, (list, tuple, set)):
            return False
        found = any(_equals(actual, element) for element in expected)
        return found if operator == "in" else not found

    logger.warning(f"Unknown routing rule operator: {operator}")
    return False


def build_order_context(items: List[Dict]) -> Dict:
    total_weight = Decimal("0")
    total_value = Decimal("0")
    total_quantity = 0
    for item in items:
        quantity = int(item.get("quantity") or 0)
        total_quantity += quantity
        total_weight += (_to_decimal(item.get("weight")) or Decimal("0")) * quantity
        total_value += (_to_decimal(item.get("unit_price")) or Decimal("0")) * quantity

    return {
        "total_quantity": total_quantity,
        "total_weight": total_weight,
        "total_value": total_value,
        "item_count": len(items),
        "vendor_ids": sorted({str(item["vendor_id"]) for item in items if item.get("vendor_id")}),
    }


def build_item_contexts(request: Dict) -> List[Dict]:
    items = request.get("items") or []
    order_ctx = build_order_context(items)
    customer = request.get("customer") or {}
    destination = request.get("shipping_address") or {}
    return [
        {"product": item, "item": item, "order": order_ctx, "customer": customer, "destination": destination}
        for item in items
    ]


def _admits_item(rule, item: Dict, vendor_types: Dict[str, str]) -> bool:
    if rule.applies_to_vendor_types:
        if vendor_types.get(str(item.get("vendor_id"))) not in rule.applies_to_vendor_types:
            return False
    if rule.applies_to_product_categories:
        if item.get("category") not in rule.applies_to_product_categories:
            return False
    return True


def rule_applies(rule, request: Dict, vendor_types: Dict[str, str], moment=None) -> bool:
    """Active, inside its validity window, and its scope filters admit at least one item."""
    if not rule.is_active or not rule.is_valid_at(moment):
        return False

    if rule.applies_to_regions:
        destination = request.get("shipping_address") or {}
        regions = {destination.get("state"), destination.get("country_code")}
        if not regions.intersection(rule.applies_to_regions):
            return False

    return any(_admits_item(rule, item, vendor_types) for item in request.get("items") or [])


def rule_matches(rule, contexts: List[Dict], vendor_types: Dict[str, str]) -> List[Dict]:
    """The item contexts that satisfy the rule's condition."""
    return [
        context
        for context in contexts
        if _admits_item(rule, context["item"], vendor_types)
        and evaluate_condition(rule.operator, resolve_field(context, rule.field_path), rule.value)
    ]


def select_locations(action_value: Dict, locations: Iterable, matched_vendor_ids: Set[str]) -> Optional[Set[str]]:
    """
    Location ids picked out by the selectors in action_value.

    Returns None when action_value has no selector at all.
    """
    action_value = action_value or {}
    selectors = ("location_ids", "location_codes", "location_types", "capabilities", "vendor_location")
    if not any(key in action_value for key in selectors):
        return None

    location_ids = {str(value) for value in action_value.get("location_ids") or []}
    location_codes = set(action_value.get("location_codes") or [])
    location_types = set(action_value.get("location_types") or [])
    capabilities = set(action_value.get("capabilities") or [])
    vendor_location = bool(action_value.get("vendor_location"))

    selected = set()
    for location in locations:
        if location_ids and str(location.id) not in location_ids:
            continue
        if location_codes and location.code not in location_codes:
            continue
        if location_types and location.location_type not in location_types:
            continue
        if capabilities and not capabilities.issubset(location.capabilities):
            continue
        if vendor_location and str(location.vendor_id) not in matched_vendor_ids:
            continue
        selected.add(str(location.id))
    return selected


@dataclass
class RoutingDirectives:
    required: Optional[Set[str]] = None
    excluded: Set[str] = field(default_factory=set)
    bonuses: Dict[str, Decimal] = field(default_factory=dict)
    surcharges: Dict[str, int] = field(default_factory=dict)
    service_level: Optional[str] = None
    rules_applied: List[str] = field(default_factory=list)
    actions_applied: List[str] = field(default_factory=list)

    def allows(self, location_id: str) -> bool:
        if location_id in self.excluded:
            return False
        return self.required is None or location_id in self.required

    def bonus_for(self, location_id: str) -> Decimal:
        return self.bonuses.get(location_id, Decimal("0"))

    def surcharge_for(self, location_id: str) -> int:
        return self.surcharges.get(location_id, 0)


def build_directives(rules: Iterable, request: Dict, locations: List, vendor_types: Dict[str, str], moment=None):
    """Fold every matching rule, highest priority first, into RoutingDirectives."""
    directives = RoutingDirectives()
    contexts = build_item_contexts(request)
    all_ids = {str(location.id) for location in locations}
    prefer_bonus = Decimal(str(getattr(settings, "ROUTING_PREFER_BONUS", 10)))

    for rule in sorted(rules, key=lambda r: r.priority, reverse=True):
        if not rule_applies(rule, request, vendor_types, moment):
            continue
        matched = rule_matches(rule, contexts, vendor_types)
        if not matched:
            continue

        matched_vendor_ids = {str(context["item"].get("vendor_id")) for context in matched}
        action_value = rule.action_value or {}
        selected = select_locations(action_value, locations, matched_vendor_ids)

        if rule.action == "require_location":
            selected = selected if selected is not None else all_ids
            directives.required = selected if directives.required is None else directives.required & selected
        elif rule.action == "exclude_location":
            directives.excluded |= selected or set()
        elif rule.action == "prefer_location":
            bonus = Decimal(str(action_value.get("bonus", prefer_bonus)))
            for location_id in selected or set():
                directives.bonuses[location_id] = directives.bonus_for(location_id) + bonus
        elif rule.action == "apply_surcharge":
            amount = int(action_value.get("amount_cents", 0))
            for location_id in selected if selected is not None else all_ids:
                directives.surcharges[location_id] = directives.surcharge_for(location_id) + amount
        elif rule.action == "require_shipping_method":
            directives.service_level = action_value.get("service_level") or directives.service_level

        directives.rules_applied.append(rule.name)
        directives.actions_applied.append(rule.action)
        logger.debug(f"Routing rule '{rule.name}' matched {len(matched)} item(s): {rule.action}")

    return directives
