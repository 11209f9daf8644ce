"""
Marketplace Service Layer

Shared service primitives. Domain services live with their bounded context:

- vendors: VendorService, OnboardingService
- commissions: CommissionService
- cart: VendorCartService
- ordering: VendorOrderService
- fulfillment: FulfillmentRoutingService, ShippingQuoteService
- payouts: PayoutService
- compliance: AgeVerificationService

Usage:
    from marketplace.services import service_ok, service_err, ErrorCodes

    result = container.vendor_order_service().create_vendor_orders(order_id, cart_id, lines)
    if not result.ok:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceResult, quantize_money, service_err, service_ok


__all__ = [
    "BaseService",
    "ErrorCodes",
    "ServiceResult",
    "quantize_money",
    "service_err",
    "service_ok",
]
