"""
Payment Infrastructure Tests
==============================

Unit tests for the transfer provider abstraction layer.
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import stripe
from django.test import TestCase, override_settings

from infrastructure.payments import (
    MockPaymentProvider,
    PaymentException,
    PaymentFactory,
    PaymentProviderInterface,
    StripeProvider,
    Transfer,
    TransferStatus,
    WebhookEvent,
    to_minor_units,
)
from utils.logging_utils import mask_value


class PaymentInterfaceTest(TestCase):
    """Test PaymentProviderInterface contract."""

    def test_interface_is_abstract(self):
        """PaymentProviderInterface should not be instantiable."""
        with self.assertRaises(TypeError):
            PaymentProviderInterface()

    def test_to_minor_units_rounds_half_up(self):
        self.assertEqual(to_minor_units(Decimal("99.99")), 9999)
        self.assertEqual(to_minor_units(Decimal("10.005")), 1001)
        self.assertEqual(to_minor_units("85"), 8500)


@override_settings(
    STRIPE_SECRET_KEY="sk_test_fake",
    STRIPE_WEBHOOK_SECRET="whsec_test_fake",
)
class StripeProviderTest(TestCase):
    """Test StripeProvider implementation."""

    def setUp(self):
        """Set up test fixtures."""
        self.provider = StripeProvider()

    def stripe_transfer(self, **overrides):
        transfer = MagicMock()
        transfer.id = "tr_test_123"
        transfer.amount = 8500
        transfer.currency = "usd"
        transfer.destination = "acct_test_456"
        transfer.reversed = False
        transfer.metadata = {"payout_id": "p1"}
        for key, value in overrides.items():
            setattr(transfer, key, value)
        return transfer

    @patch("stripe.Transfer.create")
    def test_create_transfer_success(self, mock_create):
        """Test successful transfer creation."""
        mock_create.return_value = self.stripe_transfer()

        result = self.provider.create_transfer(
            amount=Decimal("85.00"),
            currency="USD",
            destination_account="acct_test_456",
            metadata={"payout_id": "p1", "commission_count": 2},
        )

        self.assertIsInstance(result, Transfer)
        self.assertEqual(result.transfer_id, "tr_test_123")
        self.assertEqual(result.amount, 8500)
        self.assertEqual(result.status, TransferStatus.SUCCEEDED)
        mock_create.assert_called_once_with(
            amount=8500,
            currency="usd",
            destination="acct_test_456",
            metadata={"payout_id": "p1", "commission_count": "2"},
        )

    @patch("stripe.Transfer.create")
    def test_create_transfer_stripe_error(self, mock_create):
        """Test transfer creation with Stripe error."""
        mock_create.side_effect = stripe.StripeError("Insufficient platform balance")

        with self.assertRaises(PaymentException) as ctx:
            self.provider.create_transfer(amount=Decimal("50.00"), currency="usd", destination_account="acct_x")

        self.assertIn("Insufficient platform balance", str(ctx.exception))
        mock_create.assert_called_once()

    @patch("stripe.Transfer.retrieve")
    def test_retrieve_reversed_transfer(self, mock_retrieve):
        mock_retrieve.return_value = self.stripe_transfer(reversed=True)

        result = self.provider.retrieve_transfer("tr_test_123")

        self.assertEqual(result.status, TransferStatus.REVERSED)
        self.assertEqual(result.metadata, {"payout_id": "p1"})

    @patch("stripe.Webhook.construct_event")
    def test_verify_webhook_success(self, mock_construct):
        """Test successful webhook verification."""
        mock_construct.return_value = {
            "id": "evt_test_123",
            "type": "transfer.reversed",
            "data": {"object": {"id": "tr_test_123"}},
            "created": 1234567890,
        }

        result = self.provider.verify_webhook(payload=b'{"test": "data"}', signature="test_signature")

        self.assertIsInstance(result, WebhookEvent)
        self.assertEqual(result.event_id, "evt_test_123")
        self.assertEqual(result.event_type, "transfer.reversed")
        self.assertEqual(result.data, {"id": "tr_test_123"})

    @patch("stripe.Webhook.construct_event")
    def test_verify_webhook_invalid_signature(self, mock_construct):
        """Test webhook verification with invalid signature."""
        mock_construct.side_effect = stripe.SignatureVerificationError("Invalid signature", "sig_header")

        with self.assertRaises(PaymentException):
            self.provider.verify_webhook(payload=b'{"test": "data"}', signature="invalid_signature")


class MockPaymentProviderTest(TestCase):
    def setUp(self):
        self.provider = MockPaymentProvider()

    def test_records_transfers(self):
        transfer = self.provider.create_transfer(Decimal("12.34"), "USD", "acct_test_1", {"payout_id": 7})

        self.assertEqual(transfer.amount, 1234)
        self.assertEqual(transfer.currency, "usd")
        self.assertEqual(transfer.metadata, {"payout_id": "7"})
        self.assertEqual(self.provider.transfers, [transfer])
        self.assertIs(self.provider.retrieve_transfer(transfer.transfer_id), transfer)

    def test_fail_with(self):
        self.provider.fail_with = "Account restricted"

        with self.assertRaisesMessage(PaymentException, "Account restricted"):
            self.provider.create_transfer(Decimal("1.00"), "usd", "acct_test_1")

        self.assertEqual(self.provider.transfers, [])

    def test_unknown_transfer(self):
        with self.assertRaises(PaymentException):
            self.provider.retrieve_transfer("tr_missing")

    def test_verify_webhook_parses_payload(self):
        payload = json.dumps({"id": "evt_1", "type": "transfer.paid", "data": {"object": {"id": "tr_1"}}, "created": 5})

        event = self.provider.verify_webhook(payload.encode(), "ignored")

        self.assertEqual(event.event_id, "evt_1")
        self.assertEqual(event.event_type, "transfer.paid")
        self.assertEqual(event.data, {"id": "tr_1"})
        self.assertEqual(event.created_at, 5)

    def test_clear(self):
        self.provider.create_transfer(Decimal("1.00"), "usd", "acct_test_1")
        self.provider.fail_with = "nope"

        self.provider.clear()

        self.assertEqual(self.provider.transfers, [])
        self.assertIsNone(self.provider.fail_with)


class PaymentFactoryTest(TestCase):
    """Test PaymentFactory."""

    @override_settings(PAYMENT_PROVIDER="stripe")
    def test_create_stripe_provider(self):
        """Test factory creates Stripe provider from settings."""
        self.assertIsInstance(PaymentFactory.create(), StripeProvider)

    @override_settings(PAYMENT_PROVIDER="mock")
    def test_create_mock_provider(self):
        self.assertIsInstance(PaymentFactory.create(), MockPaymentProvider)

    def test_create_with_explicit_backend(self):
        """Test factory with explicit backend."""
        self.assertIsInstance(PaymentFactory.create("stripe"), StripeProvider)

    def test_create_invalid_backend(self):
        """Test factory raises error for invalid backend."""
        with self.assertRaises(ValueError):
            PaymentFactory.create("invalid")


class MaskValueTest(TestCase):
    def test_masks_provider_ids_and_emails(self):
        self.assertEqual(mask_value("acct_1234567890"), "acct_***7890")
        self.assertEqual(mask_value("vendor@example.com"), "ve***@example.com")
        self.assertEqual(mask_value("short"), "***")
        self.assertEqual(mask_value(42), 42)
