"""
Dependency Injection Container
================================

Service locator for infrastructure dependencies and the marketplace
domain services built on them.

Usage:
    from infrastructure.container import container

    payment = container.payment()
    payouts = container.payout_service()
"""

import logging
from typing import Optional

from .events import EventBus, create_event_bus, get_event_bus
from .payments import PaymentFactory, PaymentProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies.

    Lazily creates and caches service instances (singleton).
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._payment: Optional[PaymentProviderInterface] = None
            self._event_bus: Optional[EventBus] = None

            # Domain Services
            self._vendor_service = None
            self._commission_service = None
            self._vendor_order_service = None
            self._routing_service = None
            self._payout_service = None
            self._age_verification_service = None

            self._initialized = True
            logger.info("Service container initialized")

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: 'stripe' or 'mock'; None reads settings.PAYMENT_PROVIDER
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment provider: {type(self._payment).__name__}")

        return self._payment

    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            self._event_bus = get_event_bus()
        return self._event_bus

    def vendor_service(self):
        if self._vendor_service is None:
            from marketplace.vendors.domain.services import VendorService

            self._vendor_service = VendorService(event_bus=self.event_bus())
            logger.debug("Created VendorService")
        return self._vendor_service

    def commission_service(self):
        if self._commission_service is None:
            from marketplace.commissions.domain.services import CommissionService

            self._commission_service = CommissionService(event_bus=self.event_bus())
            logger.debug("Created CommissionService")
        return self._commission_service

    def vendor_order_service(self):
        if self._vendor_order_service is None:
            from marketplace.cart.domain.services import VendorCartService
            from marketplace.ordering.domain.services import VendorOrderService

            self._vendor_order_service = VendorOrderService(
                cart_service=VendorCartService(vendor_service=self.vendor_service()),
                commission_service=self.commission_service(),
                event_bus=self.event_bus(),
            )
            logger.debug("Created VendorOrderService")
        return self._vendor_order_service

    def routing_service(self):
        if self._routing_service is None:
            from marketplace.fulfillment.domain.services import FulfillmentRoutingService

            self._routing_service = FulfillmentRoutingService(vendor_service=self.vendor_service())
            logger.debug("Created FulfillmentRoutingService")
        return self._routing_service

    def payout_service(self):
        if self._payout_service is None:
            from marketplace.payouts.domain.services import PayoutService

            self._payout_service = PayoutService(payment_provider=self.payment(), event_bus=self.event_bus())
            logger.debug("Created PayoutService")
        return self._payout_service

    def age_verification_service(self):
        if self._age_verification_service is None:
            from marketplace.compliance.domain.services import AgeVerificationService

            self._age_verification_service = AgeVerificationService()
            logger.debug("Created AgeVerificationService")
        return self._age_verification_service

    def reset(self):
        """Drop every cached instance."""
        self._payment = None
        self._event_bus = None
        self._vendor_service = None
        self._commission_service = None
        self._vendor_order_service = None
        self._routing_service = None
        self._payout_service = None
        self._age_verification_service = None
        logger.info("Service container reset")

    def configure_for_testing(self):
        """
        Configure container with in-process services for testing.

        Sets up:
            - Mock payment provider (no Stripe calls)
            - In-memory event bus
        """
        self.reset()
        self._payment = PaymentFactory.create("mock")
        self._event_bus = create_event_bus("memory")
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


def get_payment_provider() -> PaymentProviderInterface:
    """Get payment provider from global container."""
    return container.payment()


class Container:
    """Static access to container services."""

    @staticmethod
    def get_payment_provider() -> PaymentProviderInterface:
        return get_payment_provider()
