from .age_verification import AgeRestrictedProduct, AgeVerificationSession


__all__ = ["AgeRestrictedProduct", "AgeVerificationSession"]
