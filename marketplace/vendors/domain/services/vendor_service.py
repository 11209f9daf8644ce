"""
VendorService - Vendor Account Management

Creates vendors with the commission terms their type entitles them to,
and manages their lifecycle status.
"""

import re
import uuid
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from infrastructure.events import get_event_bus
from marketplace.commissions.domain.services.commission_policy import DEFAULT_TIER, default_commission_rate
from marketplace.domain.events import VendorCreatedEvent
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from marketplace.vendors.domain.models import Vendor


UPDATABLE_FIELDS = {
    "name",
    "email",
    "phone",
    "business_name",
    "tax_id",
    "address_line_1",
    "address_line_2",
    "city",
    "state",
    "postal_code",
    "country_code",
    "stripe_account_id",
    "stripe_onboarding_completed",
    "commission_rate",
    "verified_at",
    "metadata",
}

VENDOR_TYPES = {choice for choice, _ in Vendor.VENDOR_TYPE_CHOICES}
VENDOR_STATUSES = {choice for choice, _ in Vendor.STATUS_CHOICES}


def make_handle(name: str) -> str:
    """Lowercased name with whitespace runs replaced by dashes."""
    return re.sub(r"\s+", "-", name.strip().lower())


class VendorService(BaseService):
    """
    Service for vendor accounts.

    Responsibilities:
    - Create vendors with type-appropriate commission defaults
    - Look up, list and update vendors
    - Manage vendor status (activate, suspend)
    """

    def __init__(self, event_bus=None):
        super().__init__()
        self.event_bus = event_bus or get_event_bus()

    @BaseService.log_performance
    def create_vendor(self, data: Dict) -> ServiceResult[Vendor]:
        """
        Create a vendor.

        Args:
            data: name, email, vendor_type and any optional Vendor fields.
                  commission_rate defaults from the vendor type when omitted.
        """
        name = (data.get("name") or "").strip()
        email = data.get("email") or ""
        vendor_type = data.get("vendor_type", "shop")

        if not name or not email:
            return service_err(ErrorCodes.VALIDATION_ERROR, "Vendor name and email are required")
        if vendor_type not in VENDOR_TYPES:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Unknown vendor type: {vendor_type}")

        handle = data.get("handle") or make_handle(name)

        fields = {key: value for key, value in data.items() if key in UPDATABLE_FIELDS}
        fields.update(name=name, handle=handle, vendor_type=vendor_type, status=data.get("status", "pending"))

        if data.get("commission_rate") is None:
            fields["commission_rate"] = default_commission_rate(vendor_type)
        else:
            fields["commission_rate"] = Decimal(str(data["commission_rate"]))
        fields["commission_tier"] = data.get("commission_tier") or DEFAULT_TIER

        try:
            with transaction.atomic():
                if Vendor.objects.filter(handle=handle).exists():
                    return service_err(ErrorCodes.VALIDATION_ERROR, f"Vendor handle '{handle}' is already taken")
                vendor = Vendor.objects.create(**fields)
        except IntegrityError as e:
            self.logger.warning(f"Vendor creation conflict for handle {handle}: {e}")
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Vendor handle '{handle}' is already taken")
        except Exception as e:
            return self.internal_error("create_vendor", e)

        self.logger.info(
            f"Created {vendor.vendor_type} vendor {vendor.id} ({vendor.handle}) at {vendor.commission_rate}%"
        )
        VendorCreatedEvent(
            vendor_id=str(vendor.id), vendor_type=vendor.vendor_type, commission_rate=vendor.commission_rate
        ).publish(self.event_bus)

        return service_ok(vendor)

    def get_vendor(self, vendor_id) -> ServiceResult[Vendor]:
        try:
            return service_ok(Vendor.objects.get(id=vendor_id))
        except (Vendor.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")
        except Exception as e:
            return self.internal_error("get_vendor", e)

    def get_vendors_by_ids(self, vendor_ids: Iterable) -> Dict[str, Vendor]:
        """Map of str(vendor id) -> Vendor for the ids that exist."""
        ids = set()
        for vendor_id in vendor_ids:
            try:
                ids.add(uuid.UUID(str(vendor_id)))
            except ValueError:
                self.logger.warning(f"Ignoring malformed vendor id: {vendor_id}")
        return {str(vendor.id): vendor for vendor in Vendor.objects.filter(id__in=ids)}

    def list_vendors(self, vendor_type: Optional[str] = None, status: Optional[str] = None) -> ServiceResult[List]:
        try:
            queryset = Vendor.objects.all()
            if vendor_type:
                queryset = queryset.filter(vendor_type=vendor_type)
            if status:
                queryset = queryset.filter(status=status)
            return service_ok(list(queryset))
        except Exception as e:
            return self.internal_error("list_vendors", e)

    @BaseService.log_performance
    def update_vendor(self, vendor_id, **fields) -> ServiceResult[Vendor]:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        result = self.get_vendor(vendor_id)
        if not result.ok:
            return result

        vendor = result.value
        for key, value in fields.items():
            setattr(vendor, key, value)
        try:
            vendor.save(update_fields=list(fields) + ["updated_at"])
        except Exception as e:
            return self.internal_error("update_vendor", e)

        return service_ok(vendor)

    @BaseService.log_performance
    def set_status(self, vendor_id, status: str) -> ServiceResult[Vendor]:
        if status not in VENDOR_STATUSES:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Unknown vendor status: {status}")

        result = self.get_vendor(vendor_id)
        if not result.ok:
            return result

        vendor = result.value
        previous = vendor.status
        vendor.status = status
        vendor.save(update_fields=["status", "updated_at"])
        self.logger.info(f"Vendor {vendor.id} status {previous} -> {status}")
        return service_ok(vendor)

    def activate(self, vendor_id) -> ServiceResult[Vendor]:
        return self.set_status(vendor_id, "active")

    def suspend(self, vendor_id) -> ServiceResult[Vendor]:
        return self.set_status(vendor_id, "suspended")
