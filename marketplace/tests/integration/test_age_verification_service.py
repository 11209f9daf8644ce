from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from marketplace.compliance.domain.services import AgeVerificationService
from marketplace.compliance.domain.services.age_verification_service import age_on
from marketplace.models import AgeRestrictedProduct, AgeVerificationSession
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import AgeRestrictedProductFactory, AgeVerificationSessionFactory

TODAY = date(2024, 6, 1)


class AgeOnTests(TestCase):
    def test_birthday_boundaries(self):
        self.assertEqual(age_on(date(2003, 6, 1), TODAY), 21)
        self.assertEqual(age_on(date(2003, 6, 2), TODAY), 20)
        self.assertEqual(age_on(date(2004, 2, 29), date(2025, 2, 28)), 20)


class AgeVerificationSessionTests(TestCase):
    def setUp(self):
        self.service = AgeVerificationService()

    def test_create_session_defaults(self):
        result = self.service.create_session("cus_1")

        self.assertTrue(result.ok)
        session = result.value
        self.assertEqual(session.status, "pending")
        self.assertEqual(session.method, "self_declaration")
        self.assertEqual(session.age_threshold, 21)
        self.assertEqual(len(session.token), 64)
        self.assertAlmostEqual(
            (session.expires_at - timezone.now()).total_seconds(), timedelta(hours=24).total_seconds(), delta=60
        )

    def test_create_session_validation(self):
        self.assertEqual(self.service.create_session("").error, ErrorCodes.VALIDATION_ERROR)
        self.assertEqual(self.service.create_session("cus_1", method="palm_reading").error, ErrorCodes.VALIDATION_ERROR)

    def test_verified_when_old_enough(self):
        session = AgeVerificationSessionFactory()

        result = self.service.verify_age(session.token, "2003-06-01", today=TODAY)

        self.assertTrue(result.ok)
        self.assertEqual(result.value.status, "verified")
        self.assertEqual(result.value.verified_age, 21)
        self.assertIsNotNone(result.value.verified_at)

    def test_failed_when_too_young(self):
        session = AgeVerificationSessionFactory()

        result = self.service.verify_age(session.token, date(2003, 6, 2), today=TODAY)

        self.assertTrue(result.ok)
        self.assertEqual(result.value.status, "failed")
        self.assertEqual(result.value.verified_age, 20)
        self.assertIsNone(result.value.verified_at)

    def test_lower_threshold(self):
        session = AgeVerificationSessionFactory(age_threshold=18)

        self.assertEqual(self.service.verify_age(session.token, "2005-01-01", today=TODAY).value.status, "verified")

    def test_invalid_birth_dates(self):
        session = AgeVerificationSessionFactory()

        self.assertEqual(self.service.verify_age(session.token, "not a date").error, ErrorCodes.VALIDATION_ERROR)
        self.assertEqual(
            self.service.verify_age(session.token, "2030-01-01", today=TODAY).error, ErrorCodes.VALIDATION_ERROR
        )
        session.refresh_from_db()
        self.assertEqual(session.status, "pending")

    def test_impossible_calendar_date(self):
        session = AgeVerificationSessionFactory()

        result = self.service.verify_age(session.token, "2000-02-30")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)
        session.refresh_from_db()
        self.assertEqual(session.status, "pending")

    def test_unknown_token(self):
        self.assertEqual(self.service.verify_age("nope", "1990-01-01").error, ErrorCodes.SESSION_NOT_FOUND)

    def test_session_can_only_be_completed_once(self):
        session = AgeVerificationSessionFactory()
        self.service.verify_age(session.token, "1990-01-01")

        self.assertEqual(self.service.verify_age(session.token, "1990-01-01").error, ErrorCodes.INVALID_SESSION_STATE)

    def test_expired_session(self):
        session = AgeVerificationSessionFactory(expires_at=timezone.now() - timedelta(seconds=1))

        result = self.service.verify_age(session.token, "1990-01-01")

        self.assertEqual(result.error, ErrorCodes.SESSION_EXPIRED)
        session.refresh_from_db()
        self.assertEqual(session.status, "expired")

    def test_expire_stale_sessions(self):
        yesterday = timezone.now() - timedelta(days=1)
        stale = AgeVerificationSessionFactory(expires_at=yesterday)
        done = AgeVerificationSessionFactory(status="verified", expires_at=yesterday)
        fresh = AgeVerificationSessionFactory()

        self.assertEqual(self.service.expire_stale_sessions().value, 1)

        stale.refresh_from_db()
        done.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(stale.status, "expired")
        self.assertEqual(done.status, "verified")
        self.assertEqual(fresh.status, "pending")

    def test_is_customer_verified(self):
        AgeVerificationSessionFactory(customer_id="cus_1", status="verified", age_threshold=18)
        AgeVerificationSessionFactory(customer_id="cus_2", status="verified", method="id_document")

        self.assertTrue(self.service.is_customer_verified("cus_1", threshold=18))
        self.assertFalse(self.service.is_customer_verified("cus_1", threshold=21))
        self.assertFalse(self.service.is_customer_verified("cus_1", threshold=18, require_id_check=True))
        self.assertTrue(self.service.is_customer_verified("cus_2", require_id_check=True))
        self.assertFalse(self.service.is_customer_verified("cus_3"))

    def test_expired_verification_no_longer_counts(self):
        session = AgeVerificationSessionFactory(customer_id="cus_1")
        self.service.verify_age(session.token, "1990-01-01")
        self.assertTrue(self.service.is_customer_verified("cus_1", threshold=21))

        AgeVerificationSession.objects.filter(pk=session.pk).update(expires_at=timezone.now() - timedelta(days=400))

        self.assertFalse(self.service.is_customer_verified("cus_1", threshold=21))

    def test_latest_verification_decides(self):
        older = AgeVerificationSessionFactory(
            customer_id="cus_1", status="verified", verified_at=timezone.now() - timedelta(days=2)
        )
        AgeVerificationSessionFactory(
            customer_id="cus_1",
            status="verified",
            verified_at=timezone.now() - timedelta(days=1),
            expires_at=timezone.now() - timedelta(hours=1),
        )

        self.assertFalse(self.service.is_customer_verified("cus_1"))
        self.assertFalse(older.is_expired)

    def test_statistics(self):
        AgeVerificationSessionFactory(status="verified", verified_age=30)
        AgeVerificationSessionFactory(status="verified", verified_age=25, method="id_document")
        AgeVerificationSessionFactory(status="failed", verified_age=17)
        AgeVerificationSessionFactory()

        stats = self.service.get_statistics().value

        self.assertEqual(stats["total"], 4)
        self.assertEqual(stats["verified"], 2)
        self.assertEqual(stats["failed"], 1)
        self.assertEqual(stats["pending"], 1)
        self.assertEqual(stats["expired"], 0)
        self.assertEqual(stats["by_method"], {"self_declaration": 3, "id_document": 1})
        self.assertEqual(stats["average_age"], Decimal("27.5"))

    def test_statistics_date_window(self):
        old = AgeVerificationSessionFactory(status="verified", verified_age=40)
        AgeVerificationSessionFactory(status="failed", verified_age=19)
        AgeVerificationSession.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=30))

        recent = self.service.get_statistics(start=timezone.now() - timedelta(days=7)).value
        older = self.service.get_statistics(end=timezone.now() - timedelta(days=7)).value

        self.assertEqual((recent["total"], recent["failed"], recent["verified"]), (1, 1, 0))
        self.assertIsNone(recent["average_age"])
        self.assertEqual((older["total"], older["verified"]), (1, 1))
        self.assertEqual(older["average_age"], Decimal("40.0"))

    def test_statistics_without_sessions(self):
        stats = self.service.get_statistics().value

        self.assertEqual(stats["total"], 0)
        self.assertIsNone(stats["average_age"])


class ProductRestrictionTests(TestCase):
    def setUp(self):
        self.service = AgeVerificationService()

    def test_set_and_update_restriction(self):
        created = self.service.set_product_restriction("prod_1", minimum_age=18, compliance_category="tobacco")
        updated = self.service.set_product_restriction("prod_1", minimum_age=21)

        self.assertEqual(created.value.id, updated.value.id)
        self.assertEqual(AgeRestrictedProduct.objects.get(product_id="prod_1").minimum_age, 21)

    def test_unknown_restriction_field(self):
        result = self.service.set_product_restriction("prod_1", shelf="top")

        self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)

    def test_remove_restriction(self):
        AgeRestrictedProductFactory(product_id="prod_1")

        self.assertTrue(self.service.remove_product_restriction("prod_1").value)
        self.assertFalse(self.service.remove_product_restriction("prod_1").value)
        self.assertFalse(self.service.check_products(["prod_1"]).value["restricted"])

    def test_check_products(self):
        AgeRestrictedProductFactory(product_id="wine", minimum_age=21, restricted_states=["UT"])
        AgeRestrictedProductFactory(product_id="knife", minimum_age=18, requires_id_check=True)

        result = self.service.check_products(["wine", "knife", "bread"], state="UT").value

        self.assertTrue(result["restricted"])
        self.assertEqual(result["minimum_age"], 21)
        self.assertTrue(result["requires_id_check"])
        self.assertTrue(result["blocked_in_state"])
        self.assertEqual({p["product_id"] for p in result["products"]}, {"wine", "knife"})

    def test_check_unrestricted_products(self):
        result = self.service.check_products(["bread"]).value

        self.assertFalse(result["restricted"])
        self.assertIsNone(result["minimum_age"])


class CheckCartTests(TestCase):
    def setUp(self):
        self.service = AgeVerificationService()
        AgeRestrictedProductFactory(product_id="wine", minimum_age=21, restricted_states=["UT"])
        self.lines = [{"product_id": "wine", "quantity": 1}, {"product_id": "bread", "quantity": 2}]

    def test_unrestricted_cart_checks_out(self):
        result = self.service.check_cart([{"product_id": "bread"}]).value

        self.assertTrue(result["can_checkout"])
        self.assertFalse(result["customer_verified"])

    def test_restricted_cart_needs_verified_customer(self):
        self.assertFalse(self.service.check_cart(self.lines, customer_id="cus_1").value["can_checkout"])

        AgeVerificationSessionFactory(customer_id="cus_1", status="verified")

        result = self.service.check_cart(self.lines, customer_id="cus_1").value
        self.assertTrue(result["customer_verified"])
        self.assertTrue(result["can_checkout"])

    def test_anonymous_customer_cannot_buy_restricted(self):
        self.assertFalse(self.service.check_cart(self.lines).value["can_checkout"])

    def test_blocked_state_overrides_verification(self):
        AgeVerificationSessionFactory(customer_id="cus_1", status="verified")

        result = self.service.check_cart(self.lines, customer_id="cus_1", state="UT").value

        self.assertTrue(result["customer_verified"])
        self.assertFalse(result["can_checkout"])

    def test_id_check_products_need_document_verification(self):
        AgeRestrictedProductFactory(product_id="knife", minimum_age=18, requires_id_check=True)
        AgeVerificationSessionFactory(customer_id="cus_1", status="verified")
        lines = [{"product_id": "knife"}]

        self.assertFalse(self.service.check_cart(lines, customer_id="cus_1").value["can_checkout"])

        AgeVerificationSession.objects.filter(customer_id="cus_1").update(method="third_party")
        self.assertTrue(self.service.check_cart(lines, customer_id="cus_1").value["can_checkout"])
