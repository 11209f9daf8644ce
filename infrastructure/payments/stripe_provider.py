"""
Stripe Payment Provider
========================

Concrete implementation of PaymentProviderInterface using Stripe Connect transfers.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import stripe
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from utils.logging_utils import mask_value

from .interface import (
    PaymentException,
    PaymentProviderInterface,
    Transfer,
    TransferStatus,
    WebhookEvent,
    to_minor_units,
)

logger = logging.getLogger(__name__)

RETRYABLE_STRIPE_ERRORS = (
    stripe.RateLimitError,
    stripe.APIConnectionError,
    stripe.APIError,
)


class StripeProvider(PaymentProviderInterface):
    """
    Stripe payment provider implementation.

    Configuration (in settings.py):
        STRIPE_SECRET_KEY: Stripe secret API key
        STRIPE_WEBHOOK_SECRET: Webhook endpoint secret for signature verification
    """

    def __init__(self):
        """Initialize Stripe provider with API credentials."""
        stripe.api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
        self.webhook_secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")

        if not stripe.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_STRIPE_ERRORS),
        reraise=True,
    )
    def _create_transfer_api(self, **kwargs):
        return stripe.Transfer.create(**kwargs)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_STRIPE_ERRORS),
        reraise=True,
    )
    def _retrieve_transfer_api(self, transfer_id):
        return stripe.Transfer.retrieve(transfer_id)

    def create_transfer(
        self,
        amount: Decimal,
        currency: str,
        destination_account: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Transfer:
        """
        Create a transfer to a connected account.

        Args:
            amount: Amount to transfer in major currency unit
            currency: Currency code
            destination_account: Destination Stripe account ID
            metadata: Optional metadata

        Returns:
            Transfer details

        Raises:
            PaymentException: If transfer fails
        """
        try:
            transfer_params = {
                "amount": to_minor_units(amount),
                "currency": currency.lower(),
                "destination": destination_account,
            }

            if metadata:
                transfer_params["metadata"] = {key: str(value) for key, value in metadata.items()}

            transfer = self._create_transfer_api(**transfer_params)

            logger.info(f"Created Stripe transfer: {transfer.id} to {mask_value(destination_account)}")

            return self._to_transfer(transfer)

        except stripe.StripeError as e:
            logger.error(f"Stripe transfer failed: {str(e)}")
            raise PaymentException(f"Transfer failed: {str(e)}") from e

    def retrieve_transfer(self, transfer_id: str) -> Transfer:
        """Retrieve Stripe transfer details."""
        try:
            transfer = self._retrieve_transfer_api(transfer_id)
            return self._to_transfer(transfer)
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve transfer {transfer_id}: {str(e)}")
            raise PaymentException(f"Failed to retrieve transfer: {str(e)}") from e

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify Stripe webhook signature and parse event.

        Raises:
            PaymentException: If verification fails
        """
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)

            logger.info(f"Verified Stripe webhook event: {event['type']}")

            return WebhookEvent(
                event_id=event["id"],
                event_type=event["type"],
                data=event["data"]["object"],
                created_at=event["created"],
            )

        except ValueError as e:
            logger.error(f"Invalid webhook payload: {str(e)}")
            raise PaymentException("Invalid webhook payload") from e
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {str(e)}")
            raise PaymentException("Webhook signature verification failed") from e

    @staticmethod
    def _to_transfer(transfer) -> Transfer:
        """Map a Stripe transfer object to the provider-neutral dataclass."""
        status = TransferStatus.REVERSED if getattr(transfer, "reversed", False) else TransferStatus.SUCCEEDED
        return Transfer(
            transfer_id=transfer.id,
            amount=transfer.amount,
            currency=transfer.currency,
            destination=transfer.destination,
            status=status,
            metadata=dict(getattr(transfer, "metadata", None) or {}),
        )
