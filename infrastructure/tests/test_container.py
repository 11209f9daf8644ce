"""
Service Container Tests
========================

Unit tests for dependency injection container.
"""

from django.test import TestCase, override_settings

from infrastructure.container import Container, ServiceContainer, container, get_payment_provider
from infrastructure.events import InMemoryEventBus
from infrastructure.payments import MockPaymentProvider, PaymentProviderInterface, StripeProvider
from marketplace.payouts.domain.services import PayoutService


class ServiceContainerTest(TestCase):
    """Test ServiceContainer implementation."""

    def setUp(self):
        # Reset container before each test
        container.reset()
        self.addCleanup(container.reset)

    def test_container_is_singleton(self):
        """Test that ServiceContainer is a singleton."""
        container1 = ServiceContainer()
        container2 = ServiceContainer()

        self.assertIs(container1, container2)
        self.assertIs(container1, container)

    @override_settings(PAYMENT_PROVIDER="stripe")
    def test_get_payment_service(self):
        """Test getting payment service from container."""
        payment = container.payment()

        self.assertIsInstance(payment, PaymentProviderInterface)
        self.assertIsInstance(payment, StripeProvider)

        # Second call should return cached instance
        self.assertIs(payment, container.payment())

    def test_payment_with_explicit_backend(self):
        """Test getting payment with explicit backend."""
        self.assertIsInstance(container.payment("mock"), MockPaymentProvider)

    def test_reset_container(self):
        """Test resetting container clears cached instances."""
        payment1 = container.payment("mock")
        payouts1 = container.payout_service()

        container.reset()

        self.assertIsNot(payment1, container.payment("mock"))
        self.assertIsNot(payouts1, container.payout_service())

    def test_configure_for_testing(self):
        """Test configuring container for testing."""
        container.configure_for_testing()

        self.assertIsInstance(container.payment(), MockPaymentProvider)
        self.assertIsInstance(container.event_bus(), InMemoryEventBus)

    def test_domain_services_share_dependencies(self):
        container.configure_for_testing()

        payouts = container.payout_service()
        vendor_orders = container.vendor_order_service()

        self.assertIsInstance(payouts, PayoutService)
        self.assertIs(payouts.payment_provider, container.payment())
        self.assertIs(payouts.event_bus, container.event_bus())
        self.assertIs(vendor_orders.commission_service, container.commission_service())
        self.assertIs(container.routing_service().vendor_service, container.vendor_service())
        self.assertIs(container.age_verification_service(), container.age_verification_service())


class ConvenienceFunctionsTest(TestCase):
    """Test convenience functions for service access."""

    def setUp(self):
        container.reset()
        self.addCleanup(container.reset)

    @override_settings(PAYMENT_PROVIDER="mock")
    def test_get_payment_provider_function(self):
        payment = get_payment_provider()

        self.assertIsInstance(payment, MockPaymentProvider)
        self.assertIs(Container.get_payment_provider(), payment)
