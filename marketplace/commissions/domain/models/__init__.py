from .commission import CommissionRecord, VendorMonthlyVolume


__all__ = ["CommissionRecord", "VendorMonthlyVolume"]
