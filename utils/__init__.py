# Shared helpers for the VendorHub backend
