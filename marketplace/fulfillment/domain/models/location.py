import uuid
from decimal import Decimal

from django.db import models

from marketplace.vendors.domain.models import Vendor


CAPABILITY_PREFIXES = ("has_", "supports_")


class FulfillmentLocation(models.Model):
    """A warehouse, store, dropship origin or distribution center orders can ship from."""

    LOCATION_TYPE_CHOICES = [
        ("warehouse", "Warehouse"),
        ("store", "Store"),
        ("dropship", "Dropship"),
        ("distribution_center", "Distribution Center"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=50, unique=True)
    location_type = models.CharField(max_length=30, choices=LOCATION_TYPE_CHOICES, default="warehouse")
    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="fulfillment_locations",
        help_text="Owning vendor; empty for platform hubs",
    )

    # Address
    address_line_1 = models.CharField(max_length=255, blank=True)
    address_line_2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    country_code = models.CharField(max_length=2, default="US")
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    # Capabilities
    is_active = models.BooleanField(default=True)
    handles_returns = models.BooleanField(default=False)
    handles_exchanges = models.BooleanField(default=False)

    # Processing
    processing_time_hours = models.PositiveIntegerField(default=24)
    cutoff_time = models.CharField(max_length=5, default="14:00")
    timezone = models.CharField(max_length=64, default="America/New_York")

    # Coverage (lists of state codes)
    shipping_zones = models.JSONField(default=list, blank=True)
    excluded_states = models.JSONField(default=list, blank=True)

    # Performance
    fulfillment_rate = models.DecimalField(max_digits=4, decimal_places=3, default=Decimal("0.950"))
    average_processing_hours = models.PositiveIntegerField(default=24)
    error_rate = models.DecimalField(max_digits=4, decimal_places=3, default=Decimal("0.020"))

    # Capacity
    max_orders_per_day = models.PositiveIntegerField(null=True, blank=True)
    current_capacity_percent = models.PositiveSmallIntegerField(default=0)

    # Costs in cents
    handling_fee_cents = models.PositiveIntegerField(default=0)
    pick_pack_fee_cents = models.PositiveIntegerField(default=0)

    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_fulfillment_locations"
        ordering = ["code"]
        indexes = [
            models.Index(fields=["is_active", "country_code"], name="location_active_country_idx"),
            models.Index(fields=["vendor"], name="location_vendor_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @property
    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None

    @property
    def capabilities(self):
        """Metadata flags such as has_refrigeration that are switched on."""
        return {
            key
            for key, value in (self.metadata or {}).items()
            if value and key.startswith(CAPABILITY_PREFIXES)
        }

    @property
    def is_at_capacity(self):
        return self.current_capacity_percent >= 100


class LocationInventory(models.Model):
    """Units of a variant on hand at a fulfillment location."""

    location = models.ForeignKey(FulfillmentLocation, on_delete=models.CASCADE, related_name="inventory")
    variant_id = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_location_inventory"
        constraints = [
            models.UniqueConstraint(fields=["location", "variant_id"], name="unique_location_variant"),
        ]

    def __str__(self):
        return f"{self.variant_id} x{self.quantity} @ {self.location_id}"
