from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from marketplace.fulfillment.domain.models import FulfillmentLocation, RoutingRule


LOCATIONS = [
    {
        "name": "NYC Distribution Center",
        "code": "NYC-DC-01",
        "location_type": "distribution_center",
        "address_line_1": "123 Warehouse Way",
        "city": "New York",
        "state": "NY",
        "postal_code": "10001",
        "latitude": Decimal("40.712800"),
        "longitude": Decimal("-74.006000"),
        "handles_returns": True,
        "handles_exchanges": True,
        "processing_time_hours": 24,
        "cutoff_time": "15:00",
        "timezone": "America/New_York",
        "shipping_zones": ["NY", "NJ", "CT", "PA", "MA", "VT", "NH", "ME"],
        "fulfillment_rate": Decimal("0.950"),
        "average_processing_hours": 20,
        "error_rate": Decimal("0.020"),
        "max_orders_per_day": 5000,
        "current_capacity_percent": 45,
        "handling_fee_cents": 300,
        "pick_pack_fee_cents": 200,
        "metadata": {"has_refrigeration": True, "has_hazmat_license": False, "square_feet": 50000},
    },
    {
        "name": "LA Fulfillment Hub",
        "code": "LA-FH-01",
        "location_type": "warehouse",
        "address_line_1": "456 Logistics Blvd",
        "city": "Los Angeles",
        "state": "CA",
        "postal_code": "90001",
        "latitude": Decimal("34.052200"),
        "longitude": Decimal("-118.243700"),
        "handles_returns": True,
        "processing_time_hours": 36,
        "cutoff_time": "14:00",
        "timezone": "America/Los_Angeles",
        "shipping_zones": ["CA", "NV", "AZ", "OR", "WA", "HI"],
        "fulfillment_rate": Decimal("0.920"),
        "average_processing_hours": 32,
        "error_rate": Decimal("0.030"),
        "max_orders_per_day": 3000,
        "current_capacity_percent": 60,
        "handling_fee_cents": 250,
        "pick_pack_fee_cents": 200,
        "metadata": {"has_refrigeration": False, "has_hazmat_license": True, "square_feet": 35000},
    },
    {
        "name": "Chicago Central Hub",
        "code": "CHI-CH-01",
        "location_type": "distribution_center",
        "address_line_1": "789 Distribution Dr",
        "city": "Chicago",
        "state": "IL",
        "postal_code": "60601",
        "latitude": Decimal("41.878100"),
        "longitude": Decimal("-87.629800"),
        "handles_returns": True,
        "handles_exchanges": True,
        "processing_time_hours": 24,
        "cutoff_time": "16:00",
        "timezone": "America/Chicago",
        "shipping_zones": ["IL", "IN", "MI", "WI", "OH", "IA", "MO", "MN"],
        "fulfillment_rate": Decimal("0.940"),
        "average_processing_hours": 22,
        "error_rate": Decimal("0.025"),
        "max_orders_per_day": 4000,
        "current_capacity_percent": 55,
        "handling_fee_cents": 275,
        "pick_pack_fee_cents": 200,
        "metadata": {"has_refrigeration": True, "has_hazmat_license": True, "square_feet": 45000},
    },
    {
        "name": "Miami Store Location",
        "code": "MIA-ST-01",
        "location_type": "store",
        "address_line_1": "321 Retail Plaza",
        "city": "Miami",
        "state": "FL",
        "postal_code": "33101",
        "latitude": Decimal("25.761700"),
        "longitude": Decimal("-80.191800"),
        "handles_returns": True,
        "handles_exchanges": True,
        "processing_time_hours": 48,
        "cutoff_time": "12:00",
        "timezone": "America/New_York",
        "shipping_zones": ["FL", "GA"],
        "fulfillment_rate": Decimal("0.880"),
        "average_processing_hours": 45,
        "error_rate": Decimal("0.050"),
        "max_orders_per_day": 100,
        "current_capacity_percent": 30,
        "handling_fee_cents": 400,
        "pick_pack_fee_cents": 300,
        "metadata": {"has_refrigeration": False, "supports_pickup": True, "store_hours": "9:00-21:00"},
    },
    {
        "name": "Austin Dropship Partner",
        "code": "AUS-DS-01",
        "location_type": "dropship",
        "address_line_1": "555 Vendor Way",
        "city": "Austin",
        "state": "TX",
        "postal_code": "78701",
        "latitude": Decimal("30.267200"),
        "longitude": Decimal("-97.743100"),
        "processing_time_hours": 72,
        "cutoff_time": "10:00",
        "timezone": "America/Chicago",
        "shipping_zones": ["TX", "OK", "AR", "LA", "NM"],
        "fulfillment_rate": Decimal("0.850"),
        "average_processing_hours": 60,
        "error_rate": Decimal("0.080"),
        "max_orders_per_day": 500,
        "current_capacity_percent": 40,
        "handling_fee_cents": 0,
        "pick_pack_fee_cents": 0,
        "metadata": {"dropship_cutoff_days": 3, "min_order_value_cents": 5000},
    },
]

RULES = [
    {
        "name": "Require refrigerated location for cold items",
        "description": "Routes cold/frozen items only to locations with refrigeration",
        "rule_type": "product",
        "field_path": "product.metadata.requires_refrigeration",
        "operator": "equals",
        "value": True,
        "action": "require_location",
        "action_value": {"capabilities": ["has_refrigeration"]},
        "priority": 100,
        "metadata": {"reason": "Product safety requirement"},
    },
    {
        "name": "Require hazmat license for hazardous items",
        "description": "Hazardous materials only ship from licensed locations",
        "rule_type": "product",
        "field_path": "product.metadata.is_hazmat",
        "operator": "equals",
        "value": True,
        "action": "require_location",
        "action_value": {"capabilities": ["has_hazmat_license"]},
        "priority": 99,
        "metadata": {"reason": "Legal compliance requirement"},
    },
    {
        "name": "Regional shipping restriction - Hawaii",
        "description": "Only the LA hub ships to Hawaii",
        "rule_type": "region",
        "field_path": "destination.state",
        "operator": "equals",
        "value": "HI",
        "action": "require_location",
        "action_value": {"location_codes": ["LA-FH-01"]},
        "priority": 80,
        "applies_to_regions": ["HI"],
    },
    {
        "name": "Exclude store fulfillment for large items",
        "description": "Store locations cannot fulfill oversized items",
        "rule_type": "product",
        "field_path": "product.metadata.is_oversized",
        "operator": "equals",
        "value": True,
        "action": "exclude_location",
        "action_value": {"location_types": ["store"]},
        "priority": 60,
    },
    {
        "name": "Prefer warehouse for bulk orders",
        "description": "Orders over 50 units favour warehouses and distribution centers",
        "rule_type": "weight",
        "field_path": "order.total_quantity",
        "operator": "greater_than",
        "value": 50,
        "action": "prefer_location",
        "action_value": {"location_types": ["warehouse", "distribution_center"]},
        "priority": 50,
    },
    {
        "name": "High-value order surcharge",
        "description": "Insurance surcharge for orders over $500",
        "rule_type": "value",
        "field_path": "order.total_value",
        "operator": "greater_than",
        "value": 500,
        "action": "apply_surcharge",
        "action_value": {"amount_cents": 500, "surcharge_type": "insurance"},
        "priority": 30,
    },
]


class Command(BaseCommand):
    help = "Seeds sample fulfillment locations and routing rules."

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("Seeding fulfillment routing data..."))

        locations_created = 0
        rules_created = 0
        with transaction.atomic():
            for data in LOCATIONS:
                defaults = {key: value for key, value in data.items() if key != "code"}
                location, created = FulfillmentLocation.objects.get_or_create(code=data["code"], defaults=defaults)
                if created:
                    self.stdout.write(self.style.SUCCESS(f"Created location: {location.name} ({location.code})"))
                    locations_created += 1
                else:
                    self.stdout.write(self.style.WARNING(f"Location already exists: {location.code}"))

            for data in RULES:
                defaults = {key: value for key, value in data.items() if key != "name"}
                rule, created = RoutingRule.objects.get_or_create(name=data["name"], defaults=defaults)
                if created:
                    self.stdout.write(self.style.SUCCESS(f"Created rule: {rule.name}"))
                    rules_created += 1
                else:
                    self.stdout.write(self.style.WARNING(f"Rule already exists: {rule.name}"))

        self.stdout.write(
            self.style.SUCCESS(
                f"Fulfillment routing seed complete. Created {locations_created} locations and {rules_created} rules."
            )
        )
