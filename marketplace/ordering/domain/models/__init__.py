from .vendor_order import VendorOrder


__all__ = ["VendorOrder"]
