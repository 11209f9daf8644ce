import uuid
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from infrastructure.events import InMemoryEventBus
from marketplace.models import Vendor
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import PayableVendorFactory, VendorFactory
from marketplace.vendors.domain.services import OnboardingService, VendorService


class VendorServiceTests(TestCase):
    def setUp(self):
        self.event_bus = InMemoryEventBus()
        self.service = VendorService(event_bus=self.event_bus)

    def test_create_shop_gets_bronze_rate(self):
        result = self.service.create_vendor({"name": "Maple  Leaf Crafts", "email": "maple@example.com"})

        self.assertTrue(result.ok)
        vendor = result.value
        self.assertEqual(vendor.handle, "maple-leaf-crafts")
        self.assertEqual(vendor.vendor_type, "shop")
        self.assertEqual(vendor.status, "pending")
        self.assertEqual(vendor.commission_rate, Decimal("15"))
        self.assertEqual(vendor.commission_tier, "bronze")

        events = self.event_bus.events_of_type("vendor.created")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]["payload"]["vendor_id"], str(vendor.id))
        self.assertEqual(events[0]["payload"]["commission_rate"], "15")

    def test_create_brand_and_distributor_rates(self):
        brand = self.service.create_vendor({"name": "Acme", "email": "a@example.com", "vendor_type": "brand"}).value
        distributor = self.service.create_vendor(
            {"name": "Bulk Co", "email": "b@example.com", "vendor_type": "distributor"}
        ).value

        self.assertEqual(brand.commission_rate, Decimal("10"))
        self.assertEqual(distributor.commission_rate, Decimal("5"))

    def test_explicit_commission_rate_is_kept(self):
        result = self.service.create_vendor({"name": "Custom", "email": "c@example.com", "commission_rate": "12.5"})

        self.assertEqual(result.value.commission_rate, Decimal("12.5"))

    def test_duplicate_handle_rejected(self):
        VendorFactory(name="Taken", handle="taken")

        result = self.service.create_vendor({"name": "Taken", "email": "t@example.com"})

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)
        self.assertEqual(Vendor.objects.filter(handle="taken").count(), 1)

    def test_missing_fields_and_unknown_type(self):
        self.assertEqual(self.service.create_vendor({"name": "No Email"}).error, ErrorCodes.VALIDATION_ERROR)
        self.assertEqual(
            self.service.create_vendor({"name": "X", "email": "x@example.com", "vendor_type": "wholesaler"}).error,
            ErrorCodes.VALIDATION_ERROR,
        )
        self.assertEqual(self.event_bus.published, [])

    def test_get_vendor_not_found(self):
        self.assertEqual(self.service.get_vendor(uuid.uuid4()).error, ErrorCodes.VENDOR_NOT_FOUND)
        self.assertEqual(self.service.get_vendor("not-a-uuid").error, ErrorCodes.VENDOR_NOT_FOUND)

    def test_get_vendors_by_ids_skips_malformed(self):
        vendor = VendorFactory()

        found = self.service.get_vendors_by_ids([str(vendor.id), "garbage", str(uuid.uuid4())])

        self.assertEqual(list(found), [str(vendor.id)])

    def test_list_vendors_filters(self):
        VendorFactory(vendor_type="shop", status="active")
        VendorFactory(vendor_type="brand", status="active")
        VendorFactory(vendor_type="shop", status="suspended")

        self.assertEqual(len(self.service.list_vendors(vendor_type="shop").value), 2)
        self.assertEqual(len(self.service.list_vendors(vendor_type="shop", status="active").value), 1)

    def test_update_vendor(self):
        vendor = VendorFactory()

        result = self.service.update_vendor(vendor.id, phone="555-0100", tax_id="12-3456789")

        self.assertTrue(result.ok)
        vendor.refresh_from_db()
        self.assertEqual(vendor.tax_id, "12-3456789")

    def test_update_vendor_rejects_protected_fields(self):
        vendor = VendorFactory()

        result = self.service.update_vendor(vendor.id, vendor_type="brand")

        self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)

    def test_activate_and_suspend(self):
        vendor = VendorFactory(status="pending")

        self.assertEqual(self.service.activate(vendor.id).value.status, "active")
        self.assertEqual(self.service.suspend(vendor.id).value.status, "suspended")
        self.assertEqual(self.service.set_status(vendor.id, "archived").error, ErrorCodes.VALIDATION_ERROR)


class OnboardingServiceTests(TestCase):
    def setUp(self):
        self.service = OnboardingService()

    def test_new_vendor_in_progress(self):
        vendor = VendorFactory()

        status = self.service.get_onboarding_status(vendor.id).value

        self.assertEqual(status["status"], "in_progress")
        self.assertEqual(status["completed_steps"], 1)
        self.assertEqual(status["total_steps"], 5)
        self.assertEqual(status["progress_percent"], 20)
        self.assertEqual(status["next_step"], "address_verification")

    def test_completed_without_optional_step(self):
        vendor = PayableVendorFactory(
            address_line_1="1 Main St", city="Albany", postal_code="12207", country_code="US", tax_id="12-3456789"
        )

        status = self.service.get_onboarding_status(vendor.id).value

        self.assertEqual(status["status"], "completed")
        self.assertIsNone(status["next_step"])
        self.assertEqual(status["progress_percent"], 80)

    def test_fully_verified_vendor(self):
        vendor = PayableVendorFactory(
            address_line_1="1 Main St",
            city="Albany",
            postal_code="12207",
            country_code="US",
            tax_id="12-3456789",
            verified_at=timezone.now(),
        )

        status = self.service.get_onboarding_status(vendor.id).value

        self.assertEqual(status["progress_percent"], 100)

    def test_suspended_vendor_is_blocked(self):
        vendor = PayableVendorFactory(
            status="suspended",
            address_line_1="1 Main St",
            city="Albany",
            postal_code="12207",
            country_code="US",
            tax_id="12-3456789",
        )

        status = self.service.get_onboarding_status(vendor.id).value

        self.assertEqual(status["status"], "blocked")
        self.assertEqual(status["blockers"], ["Vendor account is suspended"])

    def test_unknown_vendor(self):
        self.assertEqual(self.service.get_onboarding_status(uuid.uuid4()).error, ErrorCodes.VENDOR_NOT_FOUND)
