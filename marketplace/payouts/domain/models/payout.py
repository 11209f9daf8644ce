import uuid
from decimal import Decimal

from django.db import models

from marketplace.vendors.domain.models import Vendor


class Payout(models.Model):
    """
    Transfer of collected vendor earnings to the vendor's connected account.
    Each payout groups the vendor's collected commission records for a period.
    """

    PAYOUT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("paid", "Paid"),
        ("failed", "Failed"),
        ("reversed", "Reversed"),
        ("cancelled", "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="payouts")

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(max_length=20, choices=PAYOUT_STATUS_CHOICES, default="pending")

    # Summary
    commission_total = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), help_text="Sum of net vendor earnings"
    )
    adjustment_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    commission_count = models.PositiveIntegerField(default=0)
    period_start = models.DateTimeField(null=True, blank=True)
    period_end = models.DateTimeField(null=True, blank=True)

    # Provider details
    transfer_id = models.CharField(max_length=255, blank=True, db_index=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # Failure information
    failed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(blank=True)
    reversed_at = models.DateTimeField(null=True, blank=True)

    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_payouts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["vendor", "-created_at"], name="payout_vendor_created_idx"),
            models.Index(fields=["status", "-created_at"], name="payout_status_created_idx"),
        ]

    def __str__(self):
        return f"Payout {str(self.id)[:8]} {self.amount_formatted} to {self.vendor_id} ({self.status})"

    @property
    def amount_formatted(self):
        return f"{self.amount:.2f} {self.currency.upper()}"

    @property
    def is_completed(self):
        return self.status == "paid"

    @property
    def is_failed(self):
        return self.status == "failed"


class PayoutAdjustment(models.Model):
    """Signed correction applied to a payout (refund clawback, bonus, fee...)."""

    ADJUSTMENT_TYPE_CHOICES = [
        ("refund", "Refund"),
        ("chargeback", "Chargeback"),
        ("bonus", "Bonus"),
        ("fee", "Fee"),
        ("correction", "Correction"),
    ]

    payout = models.ForeignKey(Payout, on_delete=models.CASCADE, related_name="adjustments")
    adjustment_type = models.CharField(max_length=20, choices=ADJUSTMENT_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2, help_text="Negative values reduce the payout")
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_payout_adjustments"
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.adjustment_type} {self.amount} on payout {self.payout_id}"
