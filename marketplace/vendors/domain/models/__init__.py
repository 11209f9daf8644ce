from .vendor import Vendor


__all__ = ["Vendor"]
