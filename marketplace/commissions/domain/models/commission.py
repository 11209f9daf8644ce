import uuid
from decimal import Decimal

from django.db import models

from marketplace.vendors.domain.models import Vendor


class CommissionRecord(models.Model):
    """
    Platform commission taken on one vendor's share of a customer order.

    Lifecycle: pending (order placed) -> collected (order completed) ->
    paid (included in a vendor payout). Cancelled vendor orders move their
    records to reversed.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("collected", "Collected"),
        ("processing", "Processing"),
        ("paid", "Paid"),
        ("reversed", "Reversed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="commission_records")
    vendor_order = models.ForeignKey(
        "marketplace.VendorOrder",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="commission_records",
    )
    order_id = models.CharField(max_length=255, db_index=True, help_text="Host framework order identifier")

    # Snapshot of the vendor's commission terms at order time
    vendor_type = models.CharField(max_length=20)
    commission_tier = models.CharField(max_length=20, blank=True)

    order_amount = models.DecimalField(max_digits=12, decimal_places=2)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2)
    net_amount = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    payout = models.ForeignKey(
        "marketplace.Payout",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="commission_records",
    )

    collected_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    reversed_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_commission_records"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["vendor", "status"], name="commission_vendor_status_idx"),
            models.Index(fields=["vendor", "-created_at"], name="commission_vendor_created_idx"),
            models.Index(fields=["status", "-created_at"], name="commission_status_created_idx"),
        ]

    def __str__(self):
        return f"Commission {self.commission_amount} on order {self.order_id} ({self.status})"

    @property
    def is_payable(self):
        return self.status == "collected" and self.payout_id is None


class VendorMonthlyVolume(models.Model):
    """Running sales volume per vendor per calendar month, used for tier decisions."""

    vendor = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name="monthly_volumes")
    year = models.PositiveIntegerField()
    month = models.PositiveSmallIntegerField()
    total_sales = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    order_count = models.PositiveIntegerField(default=0)
    commission_tier = models.CharField(max_length=20, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_vendor_monthly_volumes"
        ordering = ["-year", "-month"]
        constraints = [
            models.UniqueConstraint(fields=["vendor", "year", "month"], name="unique_vendor_month_volume"),
        ]

    def __str__(self):
        return f"{self.vendor_id} {self.year}-{self.month:02d}: {self.total_sales}"
