from .onboarding_service import OnboardingService
from .vendor_service import VendorService

__all__ = [
    "OnboardingService",
    "VendorService",
]
