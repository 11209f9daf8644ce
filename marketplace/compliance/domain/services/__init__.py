from .age_verification_service import AgeVerificationService

__all__ = [
    "AgeVerificationService",
]
