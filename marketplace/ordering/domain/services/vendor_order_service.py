"""
VendorOrderService - Vendor Order Lifecycle

Turns a placed customer order into one VendorOrder per vendor, records the
platform commission on each and drives the vendor-side fulfillment status.
"""

from typing import Dict, Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from infrastructure.events import get_event_bus
from marketplace.cart.domain.services.vendor_cart_service import VendorCartService
from marketplace.commissions.domain.services.commission_service import CommissionService
from marketplace.domain.events import VendorOrderCreatedEvent, VendorOrderStatusChangedEvent
from marketplace.fulfillment.domain.models import FulfillmentLocation
from marketplace.infra.observability.metrics import (
    vendor_order_status_changes_total,
    vendor_orders_created_total,
    vendors_per_order,
)
from marketplace.infra.observability.tracing import get_tracer
from marketplace.ordering.domain.models import VendorOrder
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


tracer = get_tracer(__name__)

FINAL_STATUSES = {"delivered", "cancelled"}


class VendorOrderService(BaseService):
    """
    Service for vendor orders.
    """

    def __init__(
        self,
        cart_service: VendorCartService = None,
        commission_service: CommissionService = None,
        event_bus=None,
    ):
        """
        Initialize VendorOrderService.

        Args:
            cart_service: Splits carts by vendor (injected)
            commission_service: Records commissions (injected)
            event_bus: Event bus for publishing domain events (injected)
        """
        super().__init__()
        self.event_bus = event_bus or get_event_bus()
        self.cart_service = cart_service or VendorCartService()
        self.commission_service = commission_service or CommissionService(event_bus=self.event_bus)

    @BaseService.log_performance
    def create_vendor_orders(
        self, order_id: str, cart_id: str, lines: Iterable[Dict], metadata: Optional[Dict] = None
    ) -> ServiceResult[List[VendorOrder]]:
        """
        Split a placed order into vendor orders and record their commissions.

        Calling this again for the same order returns the existing vendor
        orders without recording anything twice.
        """
        order_id = str(order_id)
        with tracer.start_as_current_span("create_vendor_orders") as span:
            span.set_attribute("order.id", order_id)

            existing = list(VendorOrder.objects.filter(order_id=order_id).select_related("vendor"))
            if existing:
                self.logger.info(f"Order {order_id} already split into {len(existing)} vendor orders")
                return service_ok(existing)

            cart_result = self.cart_service.process_cart(cart_id, lines)
            if not cart_result.ok:
                return cart_result

            drafts = self.cart_service.split_into_vendor_orders(cart_result.value)
            span.set_attribute("order.vendor_count", len(drafts))

            try:
                with transaction.atomic():
                    vendor_orders = []
                    for draft in drafts:
                        vendor_order = VendorOrder.objects.create(
                            order_id=order_id,
                            vendor_id=draft["vendor_id"],
                            vendor_name=draft["vendor_name"],
                            vendor_type=draft["vendor_type"],
                            status=draft["status"],
                            subtotal=draft["subtotal"],
                            commission_rate=draft["commission_rate"],
                            commission_amount=draft["commission_amount"],
                            vendor_payout=draft["vendor_payout"],
                            items=draft["items"],
                            metadata={"cart_id": str(cart_id), **(metadata or {})},
                        )

                        commission_result = self.commission_service.record_commission(
                            vendor_id=draft["vendor_id"],
                            order_id=order_id,
                            amount=draft["subtotal"],
                            vendor_order_id=vendor_order.id,
                        )
                        if not commission_result.ok:
                            transaction.set_rollback(True)
                            return commission_result

                        vendor_orders.append(vendor_order)
            except Exception as e:
                return self.internal_error("create_vendor_orders", e)

        vendors_per_order.observe(len(vendor_orders))
        for vendor_order in vendor_orders:
            vendor_orders_created_total.labels(vendor_type=vendor_order.vendor_type).inc()
            VendorOrderCreatedEvent(
                vendor_order_id=str(vendor_order.id),
                order_id=order_id,
                vendor_id=str(vendor_order.vendor_id),
                subtotal=vendor_order.subtotal,
                vendor_payout=vendor_order.vendor_payout,
            ).publish(self.event_bus)

        self.logger.info(f"Order {order_id} split into {len(vendor_orders)} vendor orders")
        return service_ok(vendor_orders)

    def get_vendor_orders(self, order_id: str) -> ServiceResult[List[VendorOrder]]:
        vendor_orders = list(VendorOrder.objects.filter(order_id=str(order_id)).select_related("vendor"))
        if not vendor_orders:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"No vendor orders for order {order_id}")
        return service_ok(vendor_orders)

    def list_for_vendor(self, vendor_id, status: Optional[str] = None) -> ServiceResult[List[VendorOrder]]:
        try:
            queryset = VendorOrder.objects.filter(vendor_id=vendor_id)
            if status:
                queryset = queryset.filter(status=status)
            return service_ok(list(queryset))
        except ValidationError:
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")

    @BaseService.log_performance
    def update_status(
        self, vendor_order_id, status: str, tracking_number: Optional[str] = None
    ) -> ServiceResult[VendorOrder]:
        """
        Move a vendor order to a new status.

        Cancelling reverses the order's commission. Once every vendor order of
        the customer order is delivered or cancelled, the remaining commissions
        are marked collected.
        """
        if status not in VendorOrder.ALLOWED_TRANSITIONS:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Unknown vendor order status: {status}")

        try:
            with transaction.atomic():
                vendor_order = VendorOrder.objects.select_for_update().get(id=vendor_order_id)
                old_status = vendor_order.status

                if not vendor_order.can_transition_to(status):
                    return service_err(
                        ErrorCodes.INVALID_ORDER_STATE,
                        f"Cannot move vendor order from '{old_status}' to '{status}'",
                    )

                vendor_order.update_status(status)
                if tracking_number:
                    vendor_order.tracking_number = tracking_number
                vendor_order.save()

                if status == "cancelled":
                    self.commission_service.reverse_commissions(vendor_order.order_id, vendor_order.id)
                if status in FINAL_STATUSES and self._order_finished(vendor_order.order_id):
                    self.commission_service.mark_commission_collected(vendor_order.order_id)

        except (VendorOrder.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Vendor order {vendor_order_id} does not exist")
        except Exception as e:
            return self.internal_error("update_status", e)

        vendor_order_status_changes_total.labels(status=status).inc()
        VendorOrderStatusChangedEvent(
            vendor_order_id=str(vendor_order.id),
            order_id=vendor_order.order_id,
            old_status=old_status,
            new_status=status,
        ).publish(self.event_bus)

        return service_ok(vendor_order)

    @staticmethod
    def _order_finished(order_id: str) -> bool:
        return not VendorOrder.objects.filter(order_id=order_id).exclude(status__in=FINAL_STATUSES).exists()

    def assign_fulfillment(self, vendor_order_id, location_id) -> ServiceResult[VendorOrder]:
        try:
            vendor_order = VendorOrder.objects.get(id=vendor_order_id)
        except (VendorOrder.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Vendor order {vendor_order_id} does not exist")

        try:
            location = FulfillmentLocation.objects.get(id=location_id, is_active=True)
        except (FulfillmentLocation.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.LOCATION_NOT_FOUND, f"Fulfillment location {location_id} is not available")

        vendor_order.fulfillment_location = location
        vendor_order.save(update_fields=["fulfillment_location", "updated_at"])
        self.logger.info(f"Vendor order {vendor_order.id} assigned to {location.code}")
        return service_ok(vendor_order)
