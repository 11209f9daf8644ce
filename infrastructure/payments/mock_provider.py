"""
Mock Payment Provider
=====================

Mock implementation of PaymentProviderInterface for testing.
Logs transfer operations instead of moving money.
"""

import json
import logging
import time
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .interface import (
    PaymentException,
    PaymentProviderInterface,
    Transfer,
    TransferStatus,
    WebhookEvent,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class MockPaymentProvider(PaymentProviderInterface):
    """
    Mock payment provider for testing and development.

    Instead of calling Stripe, this provider:
        - Logs all transfer operations
        - Stores transfers in memory for verification
        - Fails on demand when ``fail_with`` is set
    """

    def __init__(self):
        """Initialize mock provider with no recorded transfers."""
        self.transfers: List[Transfer] = []
        self.fail_with: Optional[str] = None

    def create_transfer(
        self,
        amount: Decimal,
        currency: str,
        destination_account: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Transfer:
        if self.fail_with:
            logger.info(f"[MOCK PAYMENT] Transfer to {destination_account} rejected: {self.fail_with}")
            raise PaymentException(self.fail_with)

        transfer = Transfer(
            transfer_id=f"tr_mock_{uuid.uuid4().hex[:16]}",
            amount=to_minor_units(amount),
            currency=currency.lower(),
            destination=destination_account,
            status=TransferStatus.SUCCEEDED,
            metadata={key: str(value) for key, value in (metadata or {}).items()},
        )
        logger.info(
            f"[MOCK PAYMENT] Transfer {transfer.transfer_id}: {transfer.amount} {transfer.currency} "
            f"to {destination_account}"
        )
        self.transfers.append(transfer)
        return transfer

    def retrieve_transfer(self, transfer_id: str) -> Transfer:
        for transfer in self.transfers:
            if transfer.transfer_id == transfer_id:
                return transfer
        raise PaymentException(f"Transfer {transfer_id} not found")

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """Parse the payload without signature checks."""
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise PaymentException("Invalid webhook payload") from e

        return WebhookEvent(
            event_id=event.get("id", f"evt_mock_{uuid.uuid4().hex[:12]}"),
            event_type=event["type"],
            data=event.get("data", {}).get("object", {}),
            created_at=event.get("created", int(time.time())),
        )

    def clear(self):
        """Clear recorded transfers and failure mode."""
        self.transfers = []
        self.fail_with = None
