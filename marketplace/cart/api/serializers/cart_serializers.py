from rest_framework import serializers


class CartLineSerializer(serializers.Serializer):
    """One cart line as received from the storefront cart."""

    variant_id = serializers.CharField(max_length=255)
    product_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    title = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    vendor_id = serializers.CharField(
        max_length=64, error_messages={"required": "Product is missing vendor_id", "null": "Product is missing vendor_id"}
    )
    category = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    weight = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, allow_null=True, default=None)
    metadata = serializers.DictField(required=False, default=dict)

    def validate_quantity(self, value):
        # Only enforced when the caller passes a limit
        max_quantity = self.context.get("max_quantity")
        if max_quantity is not None and value > max_quantity:
            raise serializers.ValidationError(f"Quantity {value} exceeds maximum of {max_quantity}")
        return value
