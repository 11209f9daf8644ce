from rest_framework import serializers

from marketplace.fulfillment.domain.models import FulfillmentLocation, RoutingRule


SERVICE_LEVELS = ["standard", "express", "overnight"]


class RoutingItemSerializer(serializers.Serializer):
    variant_id = serializers.CharField(max_length=255)
    product_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    vendor_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    weight = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, allow_null=True, default=None)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    metadata = serializers.DictField(required=False, default=dict)


class ShippingAddressSerializer(serializers.Serializer):
    state = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    country_code = serializers.CharField(max_length=2, required=False, default="US")
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    latitude = serializers.FloatField(required=False, allow_null=True, default=None)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None)


class RoutingRequestSerializer(serializers.Serializer):
    """Order routing request."""

    order_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    items = RoutingItemSerializer(many=True)
    shipping_address = ShippingAddressSerializer(required=False, default=dict)
    customer = serializers.DictField(required=False, default=dict)
    service_level = serializers.ChoiceField(choices=SERVICE_LEVELS, required=False, default="standard")
    exclude_locations = serializers.ListField(child=serializers.CharField(), required=False, default=list)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Order has no items to route")
        return value


class RoutingRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = RoutingRule
        fields = [
            "id",
            "name",
            "description",
            "rule_type",
            "field_path",
            "operator",
            "value",
            "action",
            "action_value",
            "priority",
            "is_active",
            "applies_to_vendor_types",
            "applies_to_product_categories",
            "applies_to_regions",
            "valid_from",
            "valid_until",
            "metadata",
        ]
        read_only_fields = ["id"]

    def validate(self, attrs):
        valid_from, valid_until = attrs.get("valid_from"), attrs.get("valid_until")
        if valid_from and valid_until and valid_until <= valid_from:
            raise serializers.ValidationError({"valid_until": "Must be after valid_from"})
        if attrs.get("action") == "apply_surcharge" and "amount_cents" not in (attrs.get("action_value") or {}):
            raise serializers.ValidationError({"action_value": "apply_surcharge requires amount_cents"})
        return attrs


class FulfillmentLocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = FulfillmentLocation
        exclude = ["created_at", "updated_at"]
        read_only_fields = ["id"]

    def validate_current_capacity_percent(self, value):
        if value > 100:
            raise serializers.ValidationError("Capacity cannot exceed 100 percent")
        return value
