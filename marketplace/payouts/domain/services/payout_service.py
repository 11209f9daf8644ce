"""
PayoutService - Vendor Payout Management

Bundles a vendor's collected commission earnings into payouts and pays
them out as transfers to the vendor's connected Stripe account.

Payout status flow:
    pending -> processing -> paid
    pending -> failed | cancelled
    processing -> failed | reversed
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Min, Sum
from django.utils import timezone

from infrastructure.events import get_event_bus
from infrastructure.payments.interface import PaymentException, PaymentProviderInterface, TransferStatus
from marketplace.commissions.domain.models import CommissionRecord
from marketplace.domain.events import PayoutCreatedEvent, PayoutFailedEvent, PayoutProcessedEvent
from marketplace.infra.observability.metrics import payout_volume_total, payouts_total, pending_payouts
from marketplace.infra.observability.tracing import add_span_attributes, get_tracer
from marketplace.payouts.domain.models import Payout, PayoutAdjustment
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, quantize_money, service_err, service_ok
from marketplace.vendors.domain.models import Vendor


tracer = get_tracer(__name__)

ZERO = Decimal("0.00")

ADJUSTMENT_TYPES = {choice for choice, _ in PayoutAdjustment.ADJUSTMENT_TYPE_CHOICES}

# event type -> (target status, statuses it may be applied from)
TRANSFER_EVENT_TRANSITIONS = {
    "transfer.paid": ("paid", {"processing"}),
    "transfer.failed": ("failed", {"processing"}),
    "transfer.reversed": ("reversed", {"processing", "paid"}),
}

TRANSFER_STATUS_EVENTS = {
    TransferStatus.SUCCEEDED: "transfer.paid",
    TransferStatus.FAILED: "transfer.failed",
    TransferStatus.REVERSED: "transfer.reversed",
}


class PayoutService(BaseService):
    """
    Service for vendor payouts.

    Responsibilities:
    - Find unpaid (collected) commissions and estimate the next payout
    - Create payouts with optional adjustments
    - Execute payouts via the payment provider (transfers)
    - Apply transfer webhooks and run batch payout cycles
    """

    def __init__(self, payment_provider: PaymentProviderInterface = None, event_bus=None):
        super().__init__()
        self.payment_provider = payment_provider or self._get_default_provider()
        self.event_bus = event_bus or get_event_bus()

    def _get_default_provider(self):
        from infrastructure.container import Container

        return Container.get_payment_provider()

    @property
    def currency(self) -> str:
        return getattr(settings, "PAYOUT_CURRENCY", "usd")

    @property
    def minimum_amount(self) -> Decimal:
        return Decimal(str(getattr(settings, "PAYOUT_MINIMUM_AMOUNT", "10.00")))

    def _unpaid_queryset(self, vendor_id, end_date: Optional[datetime] = None):
        queryset = CommissionRecord.objects.filter(vendor_id=vendor_id, status="collected", payout__isnull=True)
        if end_date:
            queryset = queryset.filter(created_at__lte=end_date)
        return queryset

    def _refresh_pending_gauge(self):
        pending_payouts.set(Payout.objects.filter(status="pending").count())

    def get_unpaid_commissions(self, vendor_id, end_date: Optional[datetime] = None) -> ServiceResult[List]:
        try:
            return service_ok(list(self._unpaid_queryset(vendor_id, end_date).order_by("created_at")))
        except ValidationError:
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")
        except Exception as e:
            return self.internal_error("get_unpaid_commissions", e)

    @BaseService.log_performance
    def calculate_next_payout(self, vendor_id) -> ServiceResult[Dict]:
        """Estimate what the vendor would receive if a payout were created now."""
        try:
            Vendor.objects.get(id=vendor_id)
        except (Vendor.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")

        totals = self._unpaid_queryset(vendor_id).aggregate(
            count=Count("id"), net=Sum("net_amount"), start=Min("created_at")
        )
        net = quantize_money(totals["net"] or ZERO)
        return service_ok(
            {
                "vendor_id": str(vendor_id),
                "commission_count": totals["count"],
                "commission_total": net,
                "estimated_payout": net,
                "period_start": totals["start"],
                "period_end": timezone.now(),
            }
        )

    @BaseService.log_performance
    def create_payout(
        self, vendor_id, end_date: Optional[datetime] = None, adjustments: Iterable[Dict] = ()
    ) -> ServiceResult[Payout]:
        """
        Create a pending payout from the vendor's collected commissions.

        Args:
            vendor_id: Vendor to pay
            end_date: Only include commissions created on or before this moment
            adjustments: Dicts with adjustment_type, amount (signed) and description

        Returns:
            ServiceResult with the pending Payout; its commissions move to processing.
        """
        try:
            vendor = Vendor.objects.get(id=vendor_id)
        except (Vendor.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")

        if not vendor.stripe_account_id:
            return service_err(ErrorCodes.PAYOUT_ACCOUNT_MISSING, f"Vendor {vendor.name} has no connected payout account")

        adjustments = list(adjustments or [])
        for adjustment in adjustments:
            if adjustment.get("adjustment_type") not in ADJUSTMENT_TYPES:
                return service_err(
                    ErrorCodes.VALIDATION_ERROR, f"Unknown adjustment type: {adjustment.get('adjustment_type')}"
                )

        period_end = end_date or timezone.now()

        try:
            with transaction.atomic():
                commissions = list(self._unpaid_queryset(vendor.id, period_end).select_for_update().order_by("created_at"))
                if not commissions:
                    return service_err(ErrorCodes.NO_UNPAID_COMMISSIONS, f"No unpaid commissions for vendor {vendor.name}")

                commission_total = quantize_money(sum((c.net_amount for c in commissions), ZERO))
                adjustment_total = quantize_money(
                    sum((Decimal(str(adjustment["amount"])) for adjustment in adjustments), ZERO)
                )
                amount = quantize_money(commission_total + adjustment_total)
                if amount <= 0:
                    return service_err(
                        ErrorCodes.INVALID_PAYOUT_AMOUNT, f"Payout amount must be positive (got {amount})"
                    )

                payout = Payout.objects.create(
                    vendor=vendor,
                    amount=amount,
                    currency=self.currency,
                    status="pending",
                    commission_total=commission_total,
                    adjustment_total=adjustment_total,
                    commission_count=len(commissions),
                    period_start=commissions[0].created_at,
                    period_end=period_end,
                )
                PayoutAdjustment.objects.bulk_create(
                    [
                        PayoutAdjustment(
                            payout=payout,
                            adjustment_type=adjustment["adjustment_type"],
                            amount=quantize_money(adjustment["amount"]),
                            description=adjustment.get("description", ""),
                        )
                        for adjustment in adjustments
                    ]
                )
                CommissionRecord.objects.filter(id__in=[c.id for c in commissions]).update(
                    status="processing", payout=payout, updated_at=timezone.now()
                )
        except Exception as e:
            return self.internal_error("create_payout", e)

        self.logger.info(
            f"Created payout {payout.id} for vendor {vendor.id}: {payout.amount} {payout.currency} "
            f"({payout.commission_count} commissions, adjustments {payout.adjustment_total})"
        )
        payouts_total.labels(status="pending").inc()
        self._refresh_pending_gauge()
        PayoutCreatedEvent(
            payout_id=str(payout.id),
            vendor_id=str(vendor.id),
            amount=payout.amount,
            commission_count=payout.commission_count,
        ).publish(self.event_bus)

        return service_ok(payout)

    def _release_commissions(self, payout: Payout) -> int:
        """Return a payout's commissions to the unpaid pool."""
        return CommissionRecord.objects.filter(payout=payout).update(
            status="collected", payout=None, paid_at=None, updated_at=timezone.now()
        )

    @BaseService.log_performance
    def process_payout(self, payout_id) -> ServiceResult[Payout]:
        """
        Transfer a pending payout to the vendor's connected account.

        On provider failure the payout is marked failed and its commissions
        are released so a later payout can include them.
        """
        with tracer.start_as_current_span("process_payout") as span:
            span.set_attribute("payout.id", str(payout_id))

            try:
                with transaction.atomic():
                    payout = Payout.objects.select_for_update().select_related("vendor").get(id=payout_id)
                    if payout.status != "pending":
                        return service_err(
                            ErrorCodes.INVALID_PAYOUT_STATE, f"Payout {payout.id} is {payout.status}, not pending"
                        )
                    payout.status = "processing"
                    payout.save(update_fields=["status", "updated_at"])
            except (Payout.DoesNotExist, ValidationError):
                return service_err(ErrorCodes.PAYOUT_NOT_FOUND, f"Payout {payout_id} does not exist")
            except Exception as e:
                return self.internal_error("process_payout", e)

            vendor = payout.vendor
            add_span_attributes(span, vendor_id=vendor.id, amount=payout.amount, currency=payout.currency)
            try:
                transfer = self.payment_provider.create_transfer(
                    amount=payout.amount,
                    currency=payout.currency,
                    destination_account=vendor.stripe_account_id,
                    metadata={
                        "payout_id": str(payout.id),
                        "vendor_id": str(vendor.id),
                        "commission_count": payout.commission_count,
                    },
                )
            except PaymentException as e:
                span.set_attribute("payout.outcome", "failed")
                return self._fail_payout(payout, str(e))

            with transaction.atomic():
                now = timezone.now()
                payout.transfer_id = transfer.transfer_id
                payout.processed_at = now
                payout.save(update_fields=["transfer_id", "processed_at", "updated_at"])
                CommissionRecord.objects.filter(payout=payout).update(status="paid", paid_at=now, updated_at=now)

            span.set_attribute("payout.outcome", "processing")

        self.logger.info(f"Payout {payout.id} submitted as transfer {transfer.transfer_id}")
        payouts_total.labels(status="processing").inc()
        payout_volume_total.labels(currency=payout.currency).inc(float(payout.amount))
        self._refresh_pending_gauge()
        PayoutProcessedEvent(
            payout_id=str(payout.id),
            vendor_id=str(vendor.id),
            amount=payout.amount,
            transfer_id=transfer.transfer_id,
        ).publish(self.event_bus)

        return service_ok(payout)

    def _fail_payout(self, payout: Payout, reason: str) -> ServiceResult[Payout]:
        with transaction.atomic():
            payout.status = "failed"
            payout.failed_at = timezone.now()
            payout.failure_reason = reason
            payout.save(update_fields=["status", "failed_at", "failure_reason", "updated_at"])
            released = self._release_commissions(payout)

        self.logger.error(f"Payout {payout.id} failed: {reason} ({released} commissions released)")
        payouts_total.labels(status="failed").inc()
        self._refresh_pending_gauge()
        PayoutFailedEvent(payout_id=str(payout.id), vendor_id=str(payout.vendor_id), reason=reason).publish(
            self.event_bus
        )
        return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, reason)

    @BaseService.log_performance
    def cancel_payout(self, payout_id) -> ServiceResult[Payout]:
        """Cancel a payout that has not been sent and release its commissions."""
        try:
            with transaction.atomic():
                payout = Payout.objects.select_for_update().get(id=payout_id)
                if payout.status != "pending":
                    return service_err(
                        ErrorCodes.INVALID_PAYOUT_STATE, f"Payout {payout.id} is {payout.status}, not pending"
                    )
                payout.status = "cancelled"
                payout.save(update_fields=["status", "updated_at"])
                self._release_commissions(payout)
        except (Payout.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.PAYOUT_NOT_FOUND, f"Payout {payout_id} does not exist")

        payouts_total.labels(status="cancelled").inc()
        self._refresh_pending_gauge()
        return service_ok(payout)

    def get_payout(self, payout_id) -> ServiceResult[Payout]:
        try:
            return service_ok(Payout.objects.select_related("vendor").get(id=payout_id))
        except (Payout.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.PAYOUT_NOT_FOUND, f"Payout {payout_id} does not exist")

    def get_vendor_payouts(
        self,
        vendor_id,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ServiceResult[Dict]:
        try:
            queryset = Payout.objects.filter(vendor_id=vendor_id)
            if status:
                queryset = queryset.filter(status=status)
            if start:
                queryset = queryset.filter(created_at__gte=start)
            if end:
                queryset = queryset.filter(created_at__lte=end)

            totals = queryset.aggregate(count=Count("id"), amount=Sum("amount"))
            by_status = {
                row["status"]: {"count": row["count"], "amount": quantize_money(row["amount"] or ZERO)}
                for row in queryset.order_by().values("status").annotate(count=Count("id"), amount=Sum("amount"))
            }
            return service_ok(
                {
                    "payouts": list(queryset.order_by("-created_at")[offset : offset + limit]),
                    "summary": {
                        "total_count": totals["count"],
                        "total_amount": quantize_money(totals["amount"] or ZERO),
                        "by_status": by_status,
                    },
                }
            )
        except ValidationError:
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")
        except Exception as e:
            return self.internal_error("get_vendor_payouts", e)

    @BaseService.log_performance
    def create_batch_payouts(
        self, vendor_ids: Optional[Iterable] = None, end_date: Optional[datetime] = None, min_amount=None
    ) -> ServiceResult[Dict]:
        """
        Create payouts for every active vendor with a connected account.

        Vendors below ``min_amount`` (default PAYOUT_MINIMUM_AMOUNT) are skipped.
        """
        minimum = Decimal(str(min_amount)) if min_amount is not None else self.minimum_amount
        vendors = Vendor.objects.filter(status="active").exclude(stripe_account_id="")
        if vendor_ids is not None:
            vendors = vendors.filter(id__in=list(vendor_ids))

        results = []
        total_amount = ZERO
        for vendor in vendors.order_by("name"):
            estimate = self._unpaid_queryset(vendor.id, end_date).aggregate(count=Count("id"), net=Sum("net_amount"))
            if not estimate["count"]:
                results.append({"vendor_id": str(vendor.id), "status": "skipped", "reason": "no_unpaid_commissions"})
                continue
            if quantize_money(estimate["net"] or ZERO) < minimum:
                results.append({"vendor_id": str(vendor.id), "status": "skipped", "reason": "below_minimum"})
                continue

            result = self.create_payout(vendor.id, end_date=end_date)
            if result.ok:
                total_amount += result.value.amount
                results.append(
                    {
                        "vendor_id": str(vendor.id),
                        "status": "created",
                        "payout_id": str(result.value.id),
                        "amount": result.value.amount,
                    }
                )
            else:
                results.append(
                    {"vendor_id": str(vendor.id), "status": "failed", "error": result.error, "detail": result.error_detail}
                )

        summary = {
            "total_vendors": len(results),
            "created": sum(1 for r in results if r["status"] == "created"),
            "skipped": sum(1 for r in results if r["status"] == "skipped"),
            "failed": sum(1 for r in results if r["status"] == "failed"),
            "total_amount": quantize_money(total_amount),
            "results": results,
        }
        self.logger.info(
            f"Batch payouts: {summary['created']} created, {summary['skipped']} skipped, "
            f"{summary['failed']} failed, total {summary['total_amount']}"
        )
        return service_ok(summary)

    @BaseService.log_performance
    def handle_transfer_webhook(self, event_type: str, data: Dict) -> ServiceResult[Optional[Payout]]:
        """
        Apply a transfer webhook to its payout.

        Events without a payout_id in the transfer metadata are ignored
        (ok with value None).
        """
        payout_id = (data.get("metadata") or {}).get("payout_id")
        if not payout_id:
            self.logger.info(f"Ignoring {event_type} without payout_id")
            return service_ok(None)

        try:
            with transaction.atomic():
                payout = Payout.objects.select_for_update().get(id=payout_id)
                now = timezone.now()

                transition = TRANSFER_EVENT_TRANSITIONS.get(event_type)
                if transition:
                    target, allowed_from = transition
                    if payout.status == target:
                        self.logger.info(f"Duplicate {event_type} for payout {payout_id}, already {target}")
                        return service_ok(payout)
                    if payout.status not in allowed_from:
                        self.logger.warning(f"Rejected {event_type} for payout {payout_id} in state {payout.status}")
                        return service_err(
                            ErrorCodes.INVALID_PAYOUT_STATE,
                            f"Cannot apply {event_type} to payout {payout_id} in state {payout.status}",
                        )

                if event_type == "transfer.paid":
                    payout.status = "paid"
                    payout.paid_at = now
                elif event_type == "transfer.reversed":
                    payout.status = "reversed"
                    payout.reversed_at = now
                elif event_type == "transfer.failed":
                    payout.status = "failed"
                    payout.failed_at = now
                    payout.failure_reason = data.get("failure_message") or "Transfer failed"
                    self._release_commissions(payout)
                else:
                    self.logger.info(f"Unhandled transfer event {event_type} for payout {payout_id}")
                    return service_ok(payout)

                if data.get("id") and not payout.transfer_id:
                    payout.transfer_id = data["id"]
                payout.save()
        except (Payout.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.PAYOUT_NOT_FOUND, f"Payout {payout_id} does not exist")
        except Exception as e:
            return self.internal_error("handle_transfer_webhook", e)

        payouts_total.labels(status=payout.status).inc()
        self.logger.info(f"Payout {payout.id} is now {payout.status} ({event_type})")
        if payout.status == "failed":
            PayoutFailedEvent(
                payout_id=str(payout.id), vendor_id=str(payout.vendor_id), reason=payout.failure_reason
            ).publish(self.event_bus)
        return service_ok(payout)

    def process_transfer_webhook(self, payload: bytes, signature: str) -> ServiceResult[Optional[Payout]]:
        """Verify a raw provider webhook and apply it to its payout."""
        try:
            event = self.payment_provider.verify_webhook(payload, signature)
        except PaymentException as e:
            self.logger.warning(f"Rejected transfer webhook: {e}")
            return service_err(ErrorCodes.VALIDATION_ERROR, str(e))
        return self.handle_transfer_webhook(event.event_type, event.data)

    @BaseService.log_performance
    def sync_transfer_status(self, payout_id) -> ServiceResult[Optional[Payout]]:
        """
        Re-read a sent payout's transfer from the provider and apply its
        status, for when a webhook was never delivered.
        """
        try:
            payout = Payout.objects.get(id=payout_id)
        except (Payout.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.PAYOUT_NOT_FOUND, f"Payout {payout_id} does not exist")
        if not payout.transfer_id:
            return service_err(ErrorCodes.INVALID_PAYOUT_STATE, f"Payout {payout.id} has no transfer")

        try:
            transfer = self.payment_provider.retrieve_transfer(payout.transfer_id)
        except PaymentException as e:
            return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, str(e))

        event_type = TRANSFER_STATUS_EVENTS.get(transfer.status)
        if event_type is None:
            return service_ok(payout)
        return self.handle_transfer_webhook(
            event_type, {"id": transfer.transfer_id, "metadata": {"payout_id": str(payout.id)}}
        )
