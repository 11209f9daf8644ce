from .vendor_order_service import VendorOrderService

__all__ = [
    "VendorOrderService",
]
