import uuid
from decimal import Decimal

import factory
from django.utils.text import slugify
from faker import Faker

from marketplace.models import (
    AgeRestrictedProduct,
    AgeVerificationSession,
    CommissionRecord,
    FulfillmentLocation,
    LocationInventory,
    Payout,
    RoutingRule,
    Vendor,
    VendorOrder,
)


fake = Faker()


class VendorFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Vendor

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f"Vendor {n}")
    handle = factory.LazyAttribute(lambda o: slugify(o.name))
    email = factory.Sequence(lambda n: f"vendor_{n}@example.com")
    vendor_type = "shop"
    status = "active"
    commission_rate = Decimal("15.00")
    commission_tier = "bronze"


class BrandFactory(VendorFactory):
    vendor_type = "brand"
    commission_rate = Decimal("10.00")
    commission_tier = ""


class DistributorFactory(VendorFactory):
    vendor_type = "distributor"
    commission_rate = Decimal("5.00")
    commission_tier = ""


class PayableVendorFactory(VendorFactory):
    stripe_account_id = factory.Sequence(lambda n: f"acct_test{n:06d}")
    stripe_onboarding_completed = True


class FulfillmentLocationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = FulfillmentLocation

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f"Warehouse {n}")
    code = factory.Sequence(lambda n: f"WH-{n:03d}")
    location_type = "warehouse"
    city = factory.Faker("city")
    state = "NY"
    country_code = "US"
    latitude = Decimal("40.712800")
    longitude = Decimal("-74.006000")
    is_active = True
    processing_time_hours = 24
    shipping_zones = factory.LazyFunction(lambda: ["NY", "NJ", "CT"])
    fulfillment_rate = Decimal("0.950")
    error_rate = Decimal("0.020")
    current_capacity_percent = 40
    handling_fee_cents = 100
    pick_pack_fee_cents = 50


class LocationInventoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = LocationInventory

    location = factory.SubFactory(FulfillmentLocationFactory)
    variant_id = factory.Sequence(lambda n: f"variant_{n}")
    quantity = 10


class RoutingRuleFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = RoutingRule

    name = factory.Sequence(lambda n: f"Rule {n}")
    rule_type = "product"
    field_path = "product.metadata.requires_refrigeration"
    operator = "equals"
    value = True
    action = "require_location"
    action_value = factory.LazyFunction(lambda: {"capabilities": ["has_refrigeration"]})
    priority = 10
    is_active = True


class VendorOrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = VendorOrder

    id = factory.LazyFunction(uuid.uuid4)
    order_id = factory.Sequence(lambda n: f"order_{n}")
    vendor = factory.SubFactory(VendorFactory)
    vendor_name = factory.LazyAttribute(lambda o: o.vendor.name)
    vendor_type = factory.LazyAttribute(lambda o: o.vendor.vendor_type)
    status = "pending"
    subtotal = Decimal("100.00")
    commission_rate = Decimal("15.00")
    commission_amount = Decimal("15.00")
    vendor_payout = Decimal("85.00")
    items = factory.LazyFunction(lambda: [{"variant_id": "variant_1", "quantity": 1, "unit_price": "100.00"}])


class CommissionRecordFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CommissionRecord

    id = factory.LazyFunction(uuid.uuid4)
    vendor = factory.SubFactory(VendorFactory)
    order_id = factory.Sequence(lambda n: f"order_{n}")
    vendor_type = factory.LazyAttribute(lambda o: o.vendor.vendor_type)
    commission_tier = "bronze"
    order_amount = Decimal("100.00")
    commission_rate = Decimal("15.00")
    commission_amount = Decimal("15.00")
    net_amount = Decimal("85.00")
    status = "collected"


class PayoutFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Payout

    id = factory.LazyFunction(uuid.uuid4)
    vendor = factory.SubFactory(PayableVendorFactory)
    amount = Decimal("85.00")
    currency = "usd"
    status = "pending"
    commission_total = Decimal("85.00")
    commission_count = 1


class AgeVerificationSessionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AgeVerificationSession

    customer_id = factory.Sequence(lambda n: f"cus_{n}")
    method = "self_declaration"
    age_threshold = 21


class AgeRestrictedProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AgeRestrictedProduct

    product_id = factory.Sequence(lambda n: f"prod_restricted_{n}")
    minimum_age = 21
    restriction_reason = factory.LazyFunction(lambda: fake.sentence(nb_words=4))
    compliance_category = "alcohol"


def cart_line(vendor, quantity=1, unit_price="10.00", **extra):
    """A raw cart line as the storefront sends it."""
    line = {
        "variant_id": extra.pop("variant_id", f"variant_{uuid.uuid4().hex[:8]}"),
        "product_id": extra.pop("product_id", f"prod_{uuid.uuid4().hex[:8]}"),
        "title": extra.pop("title", fake.word()),
        "quantity": quantity,
        "unit_price": unit_price,
        "vendor_id": str(vendor.id),
    }
    line.update(extra)
    return line
