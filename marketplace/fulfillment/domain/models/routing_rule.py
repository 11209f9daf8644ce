import uuid

from django.db import models
from django.utils import timezone


class RoutingRule(models.Model):
    """
    A conditional routing policy.

    When the value found at ``field_path`` in an item's routing context
    satisfies ``operator``/``value``, ``action`` is applied with
    ``action_value`` (e.g. require a location with ``has_refrigeration``).
    Rules are evaluated by descending priority.
    """

    RULE_TYPE_CHOICES = [
        ("product", "Product"),
        ("category", "Category"),
        ("vendor", "Vendor"),
        ("customer", "Customer"),
        ("region", "Region"),
        ("weight", "Weight"),
        ("value", "Order Value"),
    ]

    OPERATOR_CHOICES = [
        ("equals", "Equals"),
        ("not_equals", "Not Equals"),
        ("contains", "Contains"),
        ("greater_than", "Greater Than"),
        ("less_than", "Less Than"),
        ("in", "In"),
        ("not_in", "Not In"),
    ]

    ACTION_CHOICES = [
        ("require_location", "Require Location"),
        ("exclude_location", "Exclude Location"),
        ("prefer_location", "Prefer Location"),
        ("apply_surcharge", "Apply Surcharge"),
        ("require_shipping_method", "Require Shipping Method"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    rule_type = models.CharField(max_length=20, choices=RULE_TYPE_CHOICES)
    field_path = models.CharField(max_length=255, help_text="Dotted path, e.g. product.metadata.requires_refrigeration")
    operator = models.CharField(max_length=20, choices=OPERATOR_CHOICES, default="equals")
    value = models.JSONField(null=True, blank=True)

    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    action_value = models.JSONField(default=dict, blank=True)

    priority = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    # Scope filters (empty list = applies to all)
    applies_to_vendor_types = models.JSONField(default=list, blank=True)
    applies_to_product_categories = models.JSONField(default=list, blank=True)
    applies_to_regions = models.JSONField(default=list, blank=True)

    valid_from = models.DateTimeField(null=True, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"
        db_table = "marketplace_routing_rules"
        ordering = ["-priority", "name"]
        indexes = [
            models.Index(fields=["is_active", "-priority"], name="routing_rule_active_prio_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.action}, priority {self.priority})"

    def is_valid_at(self, moment=None) -> bool:
        moment = moment or timezone.now()
        if self.valid_from and moment < self.valid_from:
            return False
        if self.valid_until and moment > self.valid_until:
            return False
        return True
