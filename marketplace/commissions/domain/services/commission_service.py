"""
CommissionService - Commission Tracking

Records the platform's commission on every vendor order, keeps monthly
sales volume per vendor, moves shops between commission tiers and
reports commission totals for vendors and for the platform.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from infrastructure.events import get_event_bus
from marketplace.commissions.domain.models import CommissionRecord, VendorMonthlyVolume
from marketplace.commissions.domain.services.commission_policy import (
    calculate_commission,
    determine_commission_tier,
    tier_rate,
)
from marketplace.domain.events import CommissionRecordedEvent
from marketplace.infra.observability.metrics import (
    commission_amount,
    commission_tier_changes_total,
    commissions_recorded_total,
)
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, quantize_money, service_err, service_ok
from marketplace.vendors.domain.models import Vendor


ZERO = Decimal("0.00")


def previous_months(moment: datetime, count: int) -> List[Tuple[int, int]]:
    """(year, month) pairs for the `count` calendar months ending with moment's month."""
    year, month = moment.year, moment.month
    months = []
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return months


def _sum(value) -> Decimal:
    return quantize_money(value or ZERO)


class CommissionService(BaseService):
    """
    Service for commission records and commission tiers.

    Status flow of a record: pending -> collected -> processing -> paid,
    with reversed for cancelled vendor orders.
    """

    def __init__(self, event_bus=None):
        super().__init__()
        self.event_bus = event_bus or get_event_bus()

    @BaseService.log_performance
    def record_commission(
        self,
        vendor_id,
        order_id: str,
        amount,
        vendor_order_id=None,
        metadata: Optional[Dict] = None,
    ) -> ServiceResult[CommissionRecord]:
        """
        Record the commission on a vendor's share of an order.

        Args:
            vendor_id: Vendor receiving the sale
            order_id: Host order identifier
            amount: Vendor's gross subtotal for the order
            vendor_order_id: VendorOrder this commission belongs to, if any
        """
        try:
            vendor = Vendor.objects.get(id=vendor_id)
        except (Vendor.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")

        try:
            breakdown = calculate_commission(vendor, amount)
        except ValueError as e:
            return service_err(ErrorCodes.VALIDATION_ERROR, str(e))

        try:
            with transaction.atomic():
                record = CommissionRecord.objects.create(
                    vendor=vendor,
                    vendor_order_id=vendor_order_id,
                    order_id=str(order_id),
                    vendor_type=breakdown.vendor_type,
                    commission_tier=breakdown.commission_tier,
                    order_amount=breakdown.gross_amount,
                    commission_rate=breakdown.commission_rate,
                    commission_amount=breakdown.commission_amount,
                    net_amount=breakdown.net_amount,
                    status="pending",
                    metadata=metadata or {},
                )
                self.update_monthly_volume(vendor, breakdown.gross_amount)
                event = CommissionRecordedEvent(
                    commission_id=str(record.id),
                    vendor_id=str(vendor.id),
                    order_id=str(order_id),
                    commission_amount=record.commission_amount,
                    net_amount=record.net_amount,
                )
                # callers may hold an outer transaction; publish only once it commits
                transaction.on_commit(lambda: event.publish(self.event_bus))
        except Exception as e:
            return self.internal_error("record_commission", e)

        if vendor.is_shop:
            tier_result = self.update_vendor_tier(vendor.id)
            if not tier_result.ok:
                self.logger.warning(f"Tier refresh after order {order_id} failed: {tier_result.error_detail}")

        commissions_recorded_total.labels(
            vendor_type=breakdown.vendor_type, commission_tier=breakdown.commission_tier or "none"
        ).inc()
        commission_amount.observe(float(breakdown.commission_amount))

        self.logger.info(
            f"Recorded commission {record.commission_amount} ({record.commission_rate}%) "
            f"for vendor {vendor.id} on order {order_id}"
        )
        return service_ok(record)

    def update_monthly_volume(self, vendor: Vendor, amount, when: Optional[datetime] = None) -> VendorMonthlyVolume:
        """Add one order of `amount` to the vendor's volume for when's month."""
        when = when or timezone.now()
        with transaction.atomic():
            volume, _ = VendorMonthlyVolume.objects.select_for_update().get_or_create(
                vendor=vendor,
                year=when.year,
                month=when.month,
                defaults={"commission_tier": vendor.commission_tier},
            )
            VendorMonthlyVolume.objects.filter(pk=volume.pk).update(
                total_sales=F("total_sales") + quantize_money(amount),
                order_count=F("order_count") + 1,
            )
            volume.refresh_from_db()
        return volume

    def get_average_monthly_sales(self, vendor_id, months: Optional[int] = None) -> Decimal:
        """
        Average of total_sales over the volume rows of the last `months`
        calendar months, current month included. Months without a row are
        not counted in the divisor.
        """
        months = months or getattr(settings, "COMMISSION_TIER_LOOKBACK_MONTHS", 3)
        period = Q()
        for year, month in previous_months(timezone.now(), months):
            period |= Q(year=year, month=month)

        stats = VendorMonthlyVolume.objects.filter(period, vendor_id=vendor_id).aggregate(
            total=Sum("total_sales"), rows=Count("id")
        )
        rows = max(stats["rows"] or 0, 1)
        return quantize_money((stats["total"] or ZERO) / rows)

    @BaseService.log_performance
    def update_vendor_tier(self, vendor_id) -> ServiceResult[Dict]:
        """Re-evaluate a shop's tier from recent sales. Brands and distributors are left unchanged."""
        try:
            with transaction.atomic():
                vendor = Vendor.objects.select_for_update().get(id=vendor_id)
                previous_tier = vendor.commission_tier

                if not vendor.is_shop:
                    return service_ok(
                        {"vendor": vendor, "changed": False, "previous_tier": previous_tier, "tier": previous_tier}
                    )

                average = self.get_average_monthly_sales(vendor.id)
                new_tier = determine_commission_tier(average)
                new_rate = tier_rate(new_tier)
                changed = new_tier != previous_tier or vendor.commission_rate != new_rate

                if changed:
                    vendor.commission_tier = new_tier
                    vendor.commission_rate = new_rate
                    vendor.save(update_fields=["commission_tier", "commission_rate", "updated_at"])

                now = timezone.now()
                VendorMonthlyVolume.objects.filter(vendor=vendor, year=now.year, month=now.month).update(
                    commission_tier=new_tier
                )
        except (Vendor.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")
        except Exception as e:
            return self.internal_error("update_vendor_tier", e)

        if new_tier != previous_tier:
            commission_tier_changes_total.labels(from_tier=previous_tier, to_tier=new_tier).inc()
            self.logger.info(f"Vendor {vendor.id} moved from {previous_tier} to {new_tier} (avg sales {average})")

        return service_ok(
            {
                "vendor": vendor,
                "changed": changed,
                "previous_tier": previous_tier,
                "tier": new_tier,
                "average_monthly_sales": average,
            }
        )

    @BaseService.log_performance
    def refresh_all_tiers(self) -> ServiceResult[Dict]:
        """Run update_vendor_tier for every active shop."""
        summary = {"evaluated": 0, "changed": 0, "failed": 0}
        vendor_ids = Vendor.objects.filter(vendor_type="shop", status="active").values_list("id", flat=True)

        for vendor_id in vendor_ids:
            summary["evaluated"] += 1
            result = self.update_vendor_tier(vendor_id)
            if not result.ok:
                summary["failed"] += 1
                self.logger.error(f"Tier refresh failed for vendor {vendor_id}: {result.error_detail}")
            elif result.value["changed"]:
                summary["changed"] += 1

        return service_ok(summary)

    def _filter_period(self, queryset, start: Optional[datetime], end: Optional[datetime]):
        if start:
            queryset = queryset.filter(created_at__gte=start)
        if end:
            queryset = queryset.filter(created_at__lte=end)
        return queryset

    @staticmethod
    def _by_status(queryset) -> Dict[str, Dict]:
        rows = queryset.values("status").annotate(count=Count("id"), commission=Sum("commission_amount"))
        return {row["status"]: {"count": row["count"], "commission": _sum(row["commission"])} for row in rows}

    def get_vendor_commission_report(
        self, vendor_id, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> ServiceResult[Dict]:
        """Totals for a vendor. Reversed records appear in by_status only."""
        try:
            Vendor.objects.get(id=vendor_id)
        except (Vendor.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")

        try:
            records = self._filter_period(CommissionRecord.objects.filter(vendor_id=vendor_id), start, end)
            totals = records.exclude(status="reversed").aggregate(
                orders=Count("id"),
                sales=Sum("order_amount"),
                commission=Sum("commission_amount"),
                net=Sum("net_amount"),
            )
            return service_ok(
                {
                    "vendor_id": str(vendor_id),
                    "period_start": start,
                    "period_end": end,
                    "total_orders": totals["orders"] or 0,
                    "total_sales": _sum(totals["sales"]),
                    "total_commission": _sum(totals["commission"]),
                    "total_net": _sum(totals["net"]),
                    "by_status": self._by_status(records),
                }
            )
        except Exception as e:
            return self.internal_error("get_vendor_commission_report", e)

    def get_platform_analytics(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> ServiceResult[Dict]:
        try:
            records = self._filter_period(CommissionRecord.objects.all(), start, end)
            active = records.exclude(status="reversed")

            totals = active.aggregate(
                orders=Count("id"),
                sales=Sum("order_amount"),
                commission=Sum("commission_amount"),
                net=Sum("net_amount"),
            )

            by_vendor_type = {}
            for row in active.values("vendor_type").annotate(
                orders=Count("id"), sales=Sum("order_amount"), commission=Sum("commission_amount")
            ):
                sales = _sum(row["sales"])
                commission = _sum(row["commission"])
                by_vendor_type[row["vendor_type"]] = {
                    "orders": row["orders"],
                    "sales": sales,
                    "commission": commission,
                    "avg_commission_rate": quantize_money(commission / sales * 100) if sales else ZERO,
                }

            return service_ok(
                {
                    "period_start": start,
                    "period_end": end,
                    "total_orders": totals["orders"] or 0,
                    "total_sales": _sum(totals["sales"]),
                    "total_commission": _sum(totals["commission"]),
                    "total_vendor_net": _sum(totals["net"]),
                    "by_vendor_type": by_vendor_type,
                    "by_status": self._by_status(records),
                }
            )
        except Exception as e:
            return self.internal_error("get_platform_analytics", e)

    @BaseService.log_performance
    def mark_commission_collected(self, order_id: str) -> ServiceResult[int]:
        """Pending commissions of the order become collectable for payout."""
        try:
            updated = CommissionRecord.objects.filter(order_id=str(order_id), status="pending").update(
                status="collected", collected_at=timezone.now(), updated_at=timezone.now()
            )
        except Exception as e:
            return self.internal_error("mark_commission_collected", e)

        if not updated:
            self.logger.info(f"No pending commissions to collect for order {order_id}")
        return service_ok(updated)

    @BaseService.log_performance
    def mark_commissions_paid(self, commission_ids: Iterable, payout_id) -> ServiceResult[int]:
        try:
            updated = CommissionRecord.objects.filter(id__in=list(commission_ids)).update(
                status="paid", payout_id=payout_id, paid_at=timezone.now(), updated_at=timezone.now()
            )
        except Exception as e:
            return self.internal_error("mark_commissions_paid", e)
        return service_ok(updated)

    @BaseService.log_performance
    def reverse_commissions(self, order_id: str, vendor_order_id=None) -> ServiceResult[int]:
        """Reverse commissions not yet in a payout, e.g. after a vendor order is cancelled."""
        try:
            queryset = CommissionRecord.objects.filter(order_id=str(order_id), status__in=["pending", "collected"])
            if vendor_order_id is not None:
                queryset = queryset.filter(vendor_order_id=vendor_order_id)
            updated = queryset.update(status="reversed", reversed_at=timezone.now(), updated_at=timezone.now())
        except Exception as e:
            return self.internal_error("reverse_commissions", e)

        self.logger.info(f"Reversed {updated} commission records for order {order_id}")
        return service_ok(updated)
