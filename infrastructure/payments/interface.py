"""
Payment Provider Interface
===========================

Abstract base class defining the contract for vendor payout transfers.
Marketplace services only move money out to connected vendor accounts,
so the contract covers transfers and the webhooks that report on them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Optional


class TransferStatus(str, Enum):
    """Transfer status enumeration."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REVERSED = "reversed"


@dataclass
class Transfer:
    """
    Represents a transfer to a connected account.

    Attributes:
        transfer_id: Provider transfer identifier
        amount: Amount in smallest currency unit (cents)
        currency: ISO currency code (lowercase)
        destination: Connected account identifier
        status: Current transfer status
        metadata: Custom data attached to the transfer
    """

    transfer_id: str
    amount: int
    currency: str
    destination: str
    status: TransferStatus
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WebhookEvent:
    """
    Represents a webhook event from payment provider.

    Attributes:
        event_id: Unique event identifier
        event_type: Type of event (e.g., 'transfer.reversed')
        data: Event payload data
        created_at: Event creation timestamp
    """

    event_id: str
    event_type: str
    data: Dict[str, Any]
    created_at: int


class PaymentProviderInterface(ABC):
    """
    Abstract interface for payment provider operations.

    Concrete implementations:
        - StripeProvider: Stripe Connect transfers
        - MockPaymentProvider: in-memory transfers for tests and development
    """

    @abstractmethod
    def create_transfer(
        self,
        amount: Decimal,
        currency: str,
        destination_account: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Transfer:
        """
        Create a transfer to a connected account (e.g. vendor payout).

        Args:
            amount: Amount in major currency unit (converted to cents)
            currency: Currency code
            destination_account: Destination account ID (e.g. Stripe Connect ID)
            metadata: Optional metadata

        Returns:
            Transfer details

        Raises:
            PaymentException: If transfer fails
        """
        pass

    @abstractmethod
    def retrieve_transfer(self, transfer_id: str) -> Transfer:
        """
        Retrieve an existing transfer.

        Raises:
            PaymentException: If retrieval fails
        """
        pass

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse webhook event from payment provider.

        Args:
            payload: Raw webhook payload bytes
            signature: Webhook signature header for verification

        Returns:
            Parsed and verified WebhookEvent

        Raises:
            PaymentException: If verification fails or signature is invalid
        """
        pass


class PaymentException(Exception):
    """Base exception for payment operations."""

    pass


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to cents, rounding half up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
