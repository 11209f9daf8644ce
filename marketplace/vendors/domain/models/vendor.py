import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Vendor(models.Model):
    """A marketplace seller account: an independent shop, a brand or a distributor."""

    VENDOR_TYPE_CHOICES = [
        ("shop", "Shop"),
        ("brand", "Brand"),
        ("distributor", "Distributor"),
    ]

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("active", "Active"),
        ("suspended", "Suspended"),
        ("inactive", "Inactive"),
    ]

    TIER_CHOICES = [
        ("bronze", "Bronze"),
        ("silver", "Silver"),
        ("gold", "Gold"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    handle = models.SlugField(max_length=200, unique=True)
    email = models.EmailField()
    phone = models.CharField(max_length=50, blank=True)

    vendor_type = models.CharField(max_length=20, choices=VENDOR_TYPE_CHOICES, default="shop")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    # Commission (percentage of order value retained by the platform)
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("20.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    commission_tier = models.CharField(max_length=20, choices=TIER_CHOICES, default="bronze")

    # Stripe Connect
    stripe_account_id = models.CharField(max_length=255, blank=True, db_index=True)
    stripe_onboarding_completed = models.BooleanField(default=False)

    # Business details
    business_name = models.CharField(max_length=255, blank=True)
    tax_id = models.CharField(max_length=100, blank=True)
    address_line_1 = models.CharField(max_length=255, blank=True)
    address_line_2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    country_code = models.CharField(max_length=2, blank=True)

    verified_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_vendors"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["vendor_type", "status"], name="vendor_type_status_idx"),
            models.Index(fields=["status"], name="vendor_status_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.vendor_type})"

    @property
    def is_active(self):
        return self.status == "active"

    @property
    def is_shop(self):
        return self.vendor_type == "shop"

    @property
    def can_receive_payouts(self):
        return bool(self.stripe_account_id)
