"""
VendorCartService - Multi-Vendor Cart Splitting

Partitions a customer cart by vendor, prices each vendor's share and
computes the platform commission and vendor payout for it.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List

from django.conf import settings

from marketplace.cart.api.serializers import CartLineSerializer
from marketplace.cart.domain.vendor_cart import CartLine, MultiVendorCart, VendorCart
from marketplace.commissions.domain.services.commission_policy import calculate_commission
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, quantize_money, service_err, service_ok
from marketplace.vendors.domain.services.vendor_service import VendorService


ZERO = Decimal("0.00")


def _first_error(errors) -> str:
    """Flatten DRF serializer errors to their first message."""
    for field_name, messages in errors.items():
        message = messages[0] if isinstance(messages, list) and messages else messages
        return f"{field_name}: {message}"
    return "Invalid cart line"


class VendorCartService(BaseService):
    """
    Service for splitting carts across vendors.

    Responsibilities:
    - Parse and validate cart lines
    - Group lines by vendor and compute per-vendor commission
    - Shape vendor order drafts and vendor summaries for checkout
    """

    def __init__(self, vendor_service: VendorService = None):
        super().__init__()
        self.vendor_service = vendor_service or VendorService()

    @property
    def max_line_quantity(self) -> int:
        return getattr(settings, "CART_MAX_LINE_QUANTITY", 100)

    def parse_lines(self, lines: Iterable[Dict]) -> ServiceResult[List[CartLine]]:
        parsed = []
        for index, raw in enumerate(lines):
            serializer = CartLineSerializer(data=raw)
            if not serializer.is_valid():
                return service_err(ErrorCodes.VALIDATION_ERROR, f"Line {index}: {_first_error(serializer.errors)}")
            parsed.append(CartLine(**serializer.validated_data))
        return service_ok(parsed)

    @BaseService.log_performance
    def process_cart(self, cart_id: str, lines: Iterable[Dict]) -> ServiceResult[MultiVendorCart]:
        """
        Group a cart's lines by vendor and compute commissions.

        Args:
            cart_id: Host cart identifier
            lines: Raw cart lines (see CartLineSerializer)

        Returns:
            ServiceResult with MultiVendorCart; vendor order follows the
            order in which vendors first appear in the cart.
        """
        lines = list(lines or [])
        if not lines:
            return service_err(ErrorCodes.CART_EMPTY, "Cart is empty")

        parsed = self.parse_lines(lines)
        if not parsed.ok:
            return parsed

        grouped: "OrderedDict[str, List[CartLine]]" = OrderedDict()
        for line in parsed.value:
            grouped.setdefault(line.vendor_id, []).append(line)

        try:
            vendors = self.vendor_service.get_vendors_by_ids(grouped.keys())
        except Exception as e:
            return self.internal_error("process_cart", e)

        vendor_carts = []
        for vendor_id, vendor_lines in grouped.items():
            vendor = vendors.get(vendor_id)
            if vendor is None:
                return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")
            if not vendor.is_active:
                return service_err(ErrorCodes.VENDOR_INACTIVE, f"Vendor {vendor.name} is not active")

            subtotal = quantize_money(sum((line.line_total for line in vendor_lines), ZERO))
            vendor_carts.append(
                VendorCart(
                    vendor_id=str(vendor.id),
                    vendor_name=vendor.name,
                    vendor_type=vendor.vendor_type,
                    items=vendor_lines,
                    subtotal=subtotal,
                    commission=calculate_commission(vendor, subtotal),
                )
            )

        cart = MultiVendorCart(
            cart_id=str(cart_id),
            vendor_carts=vendor_carts,
            total_amount=quantize_money(sum((vc.subtotal for vc in vendor_carts), ZERO)),
            total_commission=quantize_money(sum((vc.commission_amount for vc in vendor_carts), ZERO)),
            total_vendor_payout=quantize_money(sum((vc.vendor_total for vc in vendor_carts), ZERO)),
        )
        self.logger.info(
            f"Cart {cart_id} split across {cart.vendor_count} vendors: total {cart.total_amount}, "
            f"commission {cart.total_commission}"
        )
        return service_ok(cart)

    def validate_cart(self, lines: Iterable[Dict]) -> ServiceResult[Dict]:
        """Check every line and report all problems at once instead of failing fast."""
        errors = []
        parsed_lines = []

        for index, raw in enumerate(lines or []):
            serializer = CartLineSerializer(data=raw, context={"max_quantity": self.max_line_quantity})
            if not serializer.is_valid():
                errors.append(
                    {"line": index, "variant_id": raw.get("variant_id"), "error": _first_error(serializer.errors)}
                )
                continue
            parsed_lines.append((index, CartLine(**serializer.validated_data)))

        vendors = self.vendor_service.get_vendors_by_ids({line.vendor_id for _, line in parsed_lines})
        for index, line in parsed_lines:
            vendor = vendors.get(line.vendor_id)
            if vendor is None:
                errors.append({"line": index, "variant_id": line.variant_id, "error": "Vendor not found"})
            elif not vendor.is_active:
                errors.append(
                    {"line": index, "variant_id": line.variant_id, "error": f"Vendor {vendor.name} is not active"}
                )

        return service_ok({"valid": not errors, "errors": errors})

    def split_into_vendor_orders(self, cart: MultiVendorCart) -> List[Dict]:
        """Vendor order drafts, one per vendor in the cart."""
        return [
            {
                "vendor_id": vendor_cart.vendor_id,
                "vendor_name": vendor_cart.vendor_name,
                "vendor_type": vendor_cart.vendor_type,
                "items": [line.to_item() for line in vendor_cart.items],
                "subtotal": vendor_cart.subtotal,
                "commission_rate": vendor_cart.commission.commission_rate,
                "commission_amount": vendor_cart.commission_amount,
                "vendor_payout": vendor_cart.vendor_total,
                "status": "pending",
            }
            for vendor_cart in cart.vendor_carts
        ]

    def get_vendor_summary(self, cart: MultiVendorCart) -> Dict:
        return {
            "vendor_count": cart.vendor_count,
            "vendors": [
                {
                    "vendor_id": vendor_cart.vendor_id,
                    "vendor_name": vendor_cart.vendor_name,
                    "item_count": vendor_cart.item_count,
                    "subtotal": vendor_cart.subtotal,
                }
                for vendor_cart in cart.vendor_carts
            ],
            "total_commission": cart.total_commission,
            "total_vendor_payout": cart.total_vendor_payout,
        }
