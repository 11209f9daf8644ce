from .vendor_cart_service import VendorCartService

__all__ = [
    "VendorCartService",
]
