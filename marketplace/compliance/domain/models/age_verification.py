import secrets
import uuid
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_session_token() -> str:
    return secrets.token_hex(32)


def default_session_expiry():
    hours = getattr(settings, "AGE_VERIFICATION_SESSION_HOURS", 24)
    return timezone.now() + timedelta(hours=hours)


def default_age_threshold():
    return getattr(settings, "DEFAULT_AGE_THRESHOLD", 21)


class AgeVerificationSession(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("verified", "Verified"),
        ("failed", "Failed"),
        ("expired", "Expired"),
    ]

    METHOD_CHOICES = [
        ("self_declaration", "Self Declaration"),
        ("id_document", "ID Document"),
        ("third_party", "Third Party"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer_id = models.CharField(max_length=255, db_index=True)
    token = models.CharField(max_length=64, unique=True, default=generate_session_token, editable=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    method = models.CharField(max_length=30, choices=METHOD_CHOICES, default="self_declaration")
    age_threshold = models.PositiveSmallIntegerField(default=default_age_threshold)

    birth_date = models.DateField(null=True, blank=True)
    verified_age = models.PositiveSmallIntegerField(null=True, blank=True)
    expires_at = models.DateTimeField(default=default_session_expiry)
    verified_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_age_verification_sessions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer_id", "status"], name="age_session_customer_idx"),
            models.Index(fields=["status", "expires_at"], name="age_session_status_exp_idx"),
        ]

    def __str__(self):
        return f"AgeVerification {self.customer_id} ({self.status})"

    @property
    def is_expired(self):
        return timezone.now() > self.expires_at


class AgeRestrictedProduct(models.Model):
    COMPLIANCE_CATEGORY_CHOICES = [
        ("alcohol", "Alcohol"),
        ("tobacco", "Tobacco"),
        ("cannabis", "Cannabis"),
        ("firearms", "Firearms"),
        ("adult", "Adult Content"),
        ("other", "Other"),
    ]

    product_id = models.CharField(max_length=255, unique=True)
    minimum_age = models.PositiveSmallIntegerField(default=21)
    restriction_reason = models.CharField(max_length=255, blank=True)
    requires_id_check = models.BooleanField(default=False)
    restricted_states = models.JSONField(default=list, blank=True, help_text="States where sale is prohibited")
    compliance_category = models.CharField(max_length=30, choices=COMPLIANCE_CATEGORY_CHOICES, default="other")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_age_restricted_products"
        ordering = ["product_id"]

    def __str__(self):
        return f"{self.product_id} ({self.minimum_age}+)"
