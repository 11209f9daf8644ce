from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from marketplace.commissions.domain.services.commission_policy import CommissionBreakdown


@dataclass
class CartLine:
    variant_id: str
    quantity: int
    unit_price: Decimal
    vendor_id: str
    product_id: str = ""
    title: str = ""
    category: str = ""
    weight: Decimal = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_item(self) -> Dict[str, Any]:
        """Snapshot stored on the vendor order."""
        return {
            "variant_id": self.variant_id,
            "product_id": self.product_id,
            "title": self.title,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
        }


@dataclass
class VendorCart:
    vendor_id: str
    vendor_name: str
    vendor_type: str
    items: List[CartLine]
    subtotal: Decimal
    commission: CommissionBreakdown

    @property
    def commission_amount(self) -> Decimal:
        return self.commission.commission_amount

    @property
    def vendor_total(self) -> Decimal:
        return self.commission.net_amount

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)


@dataclass
class MultiVendorCart:
    cart_id: str
    vendor_carts: List[VendorCart]
    total_amount: Decimal
    total_commission: Decimal
    total_vendor_payout: Decimal

    @property
    def vendor_count(self) -> int:
        return len(self.vendor_carts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cart_id": self.cart_id,
            "vendor_carts": [
                {
                    "vendor_id": vendor_cart.vendor_id,
                    "vendor_name": vendor_cart.vendor_name,
                    "vendor_type": vendor_cart.vendor_type,
                    "items": [line.to_item() for line in vendor_cart.items],
                    "subtotal": vendor_cart.subtotal,
                    "commission": asdict(vendor_cart.commission),
                    "vendor_total": vendor_cart.vendor_total,
                }
                for vendor_cart in self.vendor_carts
            ],
            "total_amount": self.total_amount,
            "total_commission": self.total_commission,
            "total_vendor_payout": self.total_vendor_payout,
        }
