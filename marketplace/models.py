from marketplace.commissions.domain.models import CommissionRecord, VendorMonthlyVolume
from marketplace.compliance.domain.models import AgeRestrictedProduct, AgeVerificationSession
from marketplace.fulfillment.domain.models import FulfillmentLocation, LocationInventory, RoutingRule
from marketplace.ordering.domain.models import VendorOrder
from marketplace.payouts.domain.models import Payout, PayoutAdjustment
from marketplace.vendors.domain.models import Vendor


__all__ = [
    "Vendor",
    "VendorOrder",
    "CommissionRecord",
    "VendorMonthlyVolume",
    "FulfillmentLocation",
    "LocationInventory",
    "RoutingRule",
    "Payout",
    "PayoutAdjustment",
    "AgeVerificationSession",
    "AgeRestrictedProduct",
]
