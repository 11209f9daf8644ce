"""
Payment Service Abstraction Layer
==================================

Provides a unified interface for vendor payout transfers across payment providers.
"""

from .factory import PaymentFactory
from .interface import (
    PaymentException,
    PaymentProviderInterface,
    Transfer,
    TransferStatus,
    WebhookEvent,
    to_minor_units,
)
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider

__all__ = [
    "PaymentProviderInterface",
    "Transfer",
    "TransferStatus",
    "WebhookEvent",
    "PaymentException",
    "StripeProvider",
    "MockPaymentProvider",
    "PaymentFactory",
    "to_minor_units",
]
