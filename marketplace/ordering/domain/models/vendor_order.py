import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from marketplace.vendors.domain.models import Vendor


class VendorOrder(models.Model):
    """The part of a customer order attributable to one vendor."""

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("fulfilled", "Fulfilled"),
        ("shipped", "Shipped"),
        ("delivered", "Delivered"),
        ("cancelled", "Cancelled"),
    ]

    ALLOWED_TRANSITIONS = {
        "pending": {"processing", "cancelled"},
        "processing": {"fulfilled", "cancelled"},
        "fulfilled": {"shipped", "cancelled"},
        "shipped": {"delivered"},
        "delivered": set(),
        "cancelled": set(),
    }

    # Status -> timestamp field stamped on entry
    STATUS_TIMESTAMPS = {
        "fulfilled": "fulfilled_at",
        "shipped": "shipped_at",
        "delivered": "delivered_at",
        "cancelled": "cancelled_at",
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_id = models.CharField(max_length=255, db_index=True, help_text="Host framework order identifier")
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="vendor_orders")

    # Vendor snapshot at order time
    vendor_name = models.CharField(max_length=200)
    vendor_type = models.CharField(max_length=20)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    vendor_payout = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    items = models.JSONField(default=list)
    fulfillment_location = models.ForeignKey(
        "marketplace.FulfillmentLocation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vendor_orders",
    )
    tracking_number = models.CharField(max_length=100, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    fulfilled_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_vendor_orders"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["order_id", "vendor"], name="unique_vendor_order_per_order"),
        ]
        indexes = [
            models.Index(fields=["vendor", "status"], name="vorder_vendor_status_idx"),
            models.Index(fields=["vendor", "-created_at"], name="vorder_vendor_created_idx"),
        ]

    def __str__(self):
        return f"VendorOrder {str(self.id)[:8]} ({self.vendor_name}) for order {self.order_id}"

    @property
    def item_count(self):
        return sum(int(item.get("quantity", 0)) for item in self.items or [])

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())

    def update_status(self, new_status: str):
        """Move to new_status and stamp the matching timestamp. Caller saves."""
        self.status = new_status
        timestamp_field = self.STATUS_TIMESTAMPS.get(new_status)
        if timestamp_field:
            setattr(self, timestamp_field, timezone.now())
