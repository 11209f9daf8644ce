from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from marketplace.fulfillment.domain.services.rule_engine import (
    build_directives,
    build_order_context,
    evaluate_condition,
    resolve_field,
    rule_applies,
    select_locations,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=dt_timezone.utc)


def make_rule(**overrides):
    fields = {
        "name": "rule",
        "rule_type": "product",
        "field_path": "product.metadata.requires_refrigeration",
        "operator": "equals",
        "value": True,
        "action": "require_location",
        "action_value": {"capabilities": ["has_refrigeration"]},
        "priority": 0,
        "is_active": True,
        "applies_to_vendor_types": [],
        "applies_to_product_categories": [],
        "applies_to_regions": [],
        "valid_from": None,
        "valid_until": None,
    }
    fields.update(overrides)
    rule = SimpleNamespace(**fields)
    rule.is_valid_at = lambda moment=None: not (
        (rule.valid_from and moment < rule.valid_from) or (rule.valid_until and moment > rule.valid_until)
    )
    return rule


def make_location(location_id, code, location_type="warehouse", capabilities=(), vendor_id=None):
    return SimpleNamespace(
        id=location_id, code=code, location_type=location_type, capabilities=set(capabilities), vendor_id=vendor_id
    )


def make_request(*items, state="NY"):
    return {
        "items": list(items),
        "shipping_address": {"state": state, "country_code": "US"},
        "customer": {},
    }


def item(variant_id="v1", quantity=1, unit_price="10.00", vendor_id="vendor-1", **extra):
    return {"variant_id": variant_id, "quantity": quantity, "unit_price": Decimal(unit_price), "vendor_id": vendor_id, **extra}


@pytest.mark.unit
class TestConditionEvaluationUnit:
    def test_resolve_field_through_dicts(self):
        context = {"product": {"metadata": {"hazmat": True}}}

        assert resolve_field(context, "product.metadata.hazmat") is True
        assert resolve_field(context, "product.metadata.missing") is None
        assert resolve_field(context, "order.total_value") is None

    def test_resolve_field_through_attributes(self):
        context = {"location": SimpleNamespace(code="WH-1")}

        assert resolve_field(context, "location.code") == "WH-1"

    def test_equals_compares_numbers_by_value(self):
        assert evaluate_condition("equals", Decimal("10.0"), 10)
        assert evaluate_condition("equals", "Frozen", "frozen")

    def test_comparisons(self):
        assert evaluate_condition("greater_than", Decimal("250.00"), 200)
        assert not evaluate_condition("greater_than", "abc", 200)
        assert evaluate_condition("less_than", 3, "5")

    def test_contains(self):
        assert evaluate_condition("contains", "Oversized Sofa", "sofa")
        assert evaluate_condition("contains", ["fragile", "glass"], "glass")
        assert not evaluate_condition("contains", 42, "4")

    def test_membership(self):
        assert evaluate_condition("in", "HI", ["HI", "AK"])
        assert evaluate_condition("not_in", "NY", ["HI", "AK"])
        assert not evaluate_condition("in", "HI", "HI")

    def test_missing_value_only_matches_negations(self):
        assert not evaluate_condition("equals", None, True)
        assert evaluate_condition("not_equals", None, True)
        assert evaluate_condition("not_in", None, ["a"])

    def test_unknown_operator_never_matches(self):
        assert not evaluate_condition("matches_regex", "abc", "a.*")

    def test_order_context_totals(self):
        context = build_order_context(
            [item(quantity=2, unit_price="10.00", weight="1.5"), item("v2", quantity=1, unit_price="5.00", vendor_id="vendor-2")]
        )

        assert context["total_quantity"] == 3
        assert context["total_value"] == Decimal("25.00")
        assert context["total_weight"] == Decimal("3.0")
        assert context["item_count"] == 2
        assert context["vendor_ids"] == ["vendor-1", "vendor-2"]


@pytest.mark.unit
class TestRuleScopeUnit:
    def test_inactive_rule_does_not_apply(self):
        rule = make_rule(is_active=False)

        assert not rule_applies(rule, make_request(item()), {}, NOW)

    def test_rule_outside_validity_window(self):
        rule = make_rule(valid_until=NOW - timedelta(days=1))

        assert not rule_applies(rule, make_request(item()), {}, NOW)

    def test_region_filter(self):
        rule = make_rule(applies_to_regions=["HI"])

        assert rule_applies(rule, make_request(item(), state="HI"), {}, NOW)
        assert not rule_applies(rule, make_request(item(), state="NY"), {}, NOW)

    def test_vendor_type_filter(self):
        rule = make_rule(applies_to_vendor_types=["brand"])

        assert rule_applies(rule, make_request(item()), {"vendor-1": "brand"}, NOW)
        assert not rule_applies(rule, make_request(item()), {"vendor-1": "shop"}, NOW)

    def test_category_filter(self):
        rule = make_rule(applies_to_product_categories=["furniture"])

        assert rule_applies(rule, make_request(item(category="furniture")), {}, NOW)
        assert not rule_applies(rule, make_request(item(category="books")), {}, NOW)


@pytest.mark.unit
class TestLocationSelectionUnit:
    def setup_method(self):
        self.cold = make_location("loc-1", "COLD-1", capabilities={"has_refrigeration"})
        self.store = make_location("loc-2", "STORE-1", location_type="store", vendor_id="vendor-1")
        self.dc = make_location("loc-3", "DC-1", location_type="distribution_center")
        self.locations = [self.cold, self.store, self.dc]

    def test_no_selector_returns_none(self):
        assert select_locations({"bonus": 5}, self.locations, set()) is None

    def test_select_by_code_and_type(self):
        assert select_locations({"location_codes": ["DC-1"]}, self.locations, set()) == {"loc-3"}
        assert select_locations({"location_types": ["store"]}, self.locations, set()) == {"loc-2"}

    def test_select_by_capability(self):
        assert select_locations({"capabilities": ["has_refrigeration"]}, self.locations, set()) == {"loc-1"}

    def test_select_vendor_locations(self):
        assert select_locations({"vendor_location": True}, self.locations, {"vendor-1"}) == {"loc-2"}
        assert select_locations({"vendor_location": True}, self.locations, {"vendor-9"}) == set()


@pytest.mark.unit
class TestBuildDirectivesUnit:
    def setup_method(self):
        self.cold = make_location("loc-1", "COLD-1", capabilities={"has_refrigeration"})
        self.store = make_location("loc-2", "STORE-1", location_type="store")
        self.dc = make_location("loc-3", "DC-1", location_type="distribution_center")
        self.locations = [self.cold, self.store, self.dc]

    def test_require_location_narrows_candidates(self):
        request = make_request(item(metadata={"requires_refrigeration": True}))

        directives = build_directives([make_rule(name="cold chain")], request, self.locations, {}, NOW)

        assert directives.required == {"loc-1"}
        assert directives.allows("loc-1")
        assert not directives.allows("loc-3")
        assert directives.rules_applied == ["cold chain"]

    def test_unmatched_rule_leaves_all_locations(self):
        request = make_request(item(metadata={}))

        directives = build_directives([make_rule()], request, self.locations, {}, NOW)

        assert directives.required is None
        assert directives.rules_applied == []

    def test_exclude_location(self):
        rule = make_rule(
            field_path="product.metadata.oversized",
            action="exclude_location",
            action_value={"location_types": ["store"]},
        )
        request = make_request(item(metadata={"oversized": True}))

        directives = build_directives([rule], request, self.locations, {}, NOW)

        assert directives.excluded == {"loc-2"}
        assert not directives.allows("loc-2")
        assert directives.allows("loc-3")

    def test_prefer_location_bonus(self):
        rule = make_rule(
            field_path="order.total_quantity",
            operator="greater_than",
            value=5,
            action="prefer_location",
            action_value={"location_types": ["distribution_center"], "bonus": 15},
        )
        request = make_request(item(quantity=10))

        directives = build_directives([rule], request, self.locations, {}, NOW)

        assert directives.bonus_for("loc-3") == Decimal("15")
        assert directives.bonus_for("loc-1") == Decimal("0")

    def test_prefer_location_default_bonus(self):
        rule = make_rule(
            field_path="order.total_quantity",
            operator="greater_than",
            value=5,
            action="prefer_location",
            action_value={"location_codes": ["DC-1"]},
        )

        directives = build_directives([rule], make_request(item(quantity=10)), self.locations, {}, NOW)

        assert directives.bonus_for("loc-3") == Decimal("10")

    def test_surcharge_without_selector_applies_everywhere(self):
        rule = make_rule(
            field_path="order.total_value",
            operator="greater_than",
            value=500,
            action="apply_surcharge",
            action_value={"amount_cents": 500},
        )
        request = make_request(item(quantity=1, unit_price="750.00"))

        directives = build_directives([rule], request, self.locations, {}, NOW)

        assert directives.surcharge_for("loc-1") == 500
        assert directives.surcharge_for("loc-3") == 500

    def test_shipping_method_rule(self):
        rule = make_rule(
            field_path="product.metadata.perishable",
            action="require_shipping_method",
            action_value={"service_level": "overnight"},
        )

        directives = build_directives([rule], make_request(item(metadata={"perishable": True})), self.locations, {}, NOW)

        assert directives.service_level == "overnight"

    def test_rules_fold_in_priority_order(self):
        cold = make_rule(name="cold", priority=50)
        exclude_cold = make_rule(
            name="no cold hub",
            priority=10,
            action="exclude_location",
            action_value={"location_codes": ["COLD-1"]},
        )
        request = make_request(item(metadata={"requires_refrigeration": True}))

        directives = build_directives([exclude_cold, cold], request, self.locations, {}, NOW)

        assert directives.rules_applied == ["cold", "no cold hub"]
        assert not directives.allows("loc-1")
