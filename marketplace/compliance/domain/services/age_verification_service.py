"""
AgeVerificationService - Age-Restricted Product Compliance

Tracks which products require a minimum age, runs customer age
verification sessions and decides whether a cart may be checked out.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import Avg, Count
from django.utils import timezone
from django.utils.dateparse import parse_date

from marketplace.compliance.domain.models import AgeRestrictedProduct, AgeVerificationSession
from marketplace.compliance.domain.models.age_verification import default_age_threshold
from marketplace.infra.observability.metrics import age_verifications_total
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


METHODS = {choice for choice, _ in AgeVerificationSession.METHOD_CHOICES}
ID_CHECK_METHODS = {"id_document", "third_party"}
RESTRICTION_FIELDS = {
    "minimum_age",
    "restriction_reason",
    "requires_id_check",
    "restricted_states",
    "compliance_category",
    "is_active",
}


def age_on(birth_date: date, today: date) -> int:
    """Age in whole years on the given day."""
    before_birthday = (today.month, today.day) < (birth_date.month, birth_date.day)
    return today.year - birth_date.year - int(before_birthday)


class AgeVerificationService(BaseService):
    """
    Service for age verification.

    Session flow: pending -> verified | failed, or pending -> expired once
    expires_at passes.
    """

    @BaseService.log_performance
    def create_session(
        self, customer_id: str, method: str = "self_declaration", age_threshold: Optional[int] = None
    ) -> ServiceResult[AgeVerificationSession]:
        if not customer_id:
            return service_err(ErrorCodes.VALIDATION_ERROR, "customer_id is required")
        if method not in METHODS:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Unknown verification method: {method}")

        session = AgeVerificationSession.objects.create(
            customer_id=str(customer_id),
            method=method,
            age_threshold=age_threshold or default_age_threshold(),
        )
        self.logger.info(f"Age verification session {session.id} started for customer {customer_id} ({method})")
        return service_ok(session)

    @BaseService.log_performance
    def verify_age(self, token: str, birth_date, today: Optional[date] = None) -> ServiceResult[AgeVerificationSession]:
        """
        Complete a session with the customer's birth date.

        Args:
            token: Session token
            birth_date: date or ISO date string
            today: Reference day for the age calculation (defaults to today)
        """
        if isinstance(birth_date, str):
            try:
                birth_date = parse_date(birth_date)
            except ValueError:
                return service_err(ErrorCodes.VALIDATION_ERROR, f"Invalid birth_date: {birth_date}")
        if not isinstance(birth_date, date):
            return service_err(ErrorCodes.VALIDATION_ERROR, "birth_date must be a valid date")

        today = today or timezone.localdate()
        if birth_date > today:
            return service_err(ErrorCodes.VALIDATION_ERROR, "birth_date cannot be in the future")

        with transaction.atomic():
            try:
                session = AgeVerificationSession.objects.select_for_update().get(token=token)
            except AgeVerificationSession.DoesNotExist:
                return service_err(ErrorCodes.SESSION_NOT_FOUND, "Verification session not found")

            if session.status != "pending":
                return service_err(ErrorCodes.INVALID_SESSION_STATE, f"Session is already {session.status}")

            if session.is_expired:
                session.status = "expired"
                session.save(update_fields=["status", "updated_at"])
                age_verifications_total.labels(status="expired", method=session.method).inc()
                return service_err(ErrorCodes.SESSION_EXPIRED, "Verification session has expired")

            age = age_on(birth_date, today)
            session.birth_date = birth_date
            session.verified_age = age
            session.status = "verified" if age >= session.age_threshold else "failed"
            if session.status == "verified":
                session.verified_at = timezone.now()
            session.save()

        age_verifications_total.labels(status=session.status, method=session.method).inc()
        self.logger.info(
            f"Age verification {session.id} for customer {session.customer_id}: {session.status} "
            f"(threshold {session.age_threshold})"
        )
        return service_ok(session)

    def is_customer_verified(self, customer_id: str, threshold: Optional[int] = None, require_id_check=False) -> bool:
        """True when the customer's latest qualifying verified session has not expired."""
        sessions = AgeVerificationSession.objects.filter(
            customer_id=str(customer_id), status="verified", age_threshold__gte=threshold or default_age_threshold()
        )
        if require_id_check:
            sessions = sessions.filter(method__in=ID_CHECK_METHODS)
        latest = sessions.order_by("-verified_at").first()
        return latest is not None and not latest.is_expired

    def set_product_restriction(self, product_id: str, **fields) -> ServiceResult[AgeRestrictedProduct]:
        unknown = set(fields) - RESTRICTION_FIELDS
        if unknown:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Unknown restriction fields: {', '.join(sorted(unknown))}")

        fields.setdefault("is_active", True)
        restriction, created = AgeRestrictedProduct.objects.update_or_create(product_id=str(product_id), defaults=fields)
        self.logger.info(
            f"{'Added' if created else 'Updated'} age restriction for {product_id}: {restriction.minimum_age}+"
        )
        return service_ok(restriction)

    def remove_product_restriction(self, product_id: str) -> ServiceResult[bool]:
        updated = AgeRestrictedProduct.objects.filter(product_id=str(product_id), is_active=True).update(
            is_active=False, updated_at=timezone.now()
        )
        return service_ok(bool(updated))

    def check_products(self, product_ids: Iterable[str], state: Optional[str] = None) -> ServiceResult[Dict]:
        restrictions = list(
            AgeRestrictedProduct.objects.filter(product_id__in=[str(p) for p in product_ids], is_active=True)
        )
        products: List[Dict] = [
            {
                "product_id": restriction.product_id,
                "minimum_age": restriction.minimum_age,
                "restriction_reason": restriction.restriction_reason,
                "requires_id_check": restriction.requires_id_check,
                "compliance_category": restriction.compliance_category,
                "blocked_in_state": bool(state and state in (restriction.restricted_states or [])),
            }
            for restriction in restrictions
        ]
        return service_ok(
            {
                "restricted": bool(products),
                "products": products,
                "minimum_age": max((p["minimum_age"] for p in products), default=None),
                "requires_id_check": any(p["requires_id_check"] for p in products),
                "blocked_in_state": any(p["blocked_in_state"] for p in products),
            }
        )

    def check_cart(self, lines: Iterable[Dict], customer_id: Optional[str] = None, state: Optional[str] = None):
        """Product restrictions for a cart plus whether this customer may check it out."""
        product_ids = {line.get("product_id") for line in lines if line.get("product_id")}
        check = self.check_products(product_ids, state).value

        customer_verified = False
        if check["restricted"] and customer_id:
            customer_verified = self.is_customer_verified(
                customer_id, check["minimum_age"], require_id_check=check["requires_id_check"]
            )

        can_checkout = not check["blocked_in_state"] and (not check["restricted"] or customer_verified)
        return service_ok({**check, "customer_verified": customer_verified, "can_checkout": can_checkout})

    @BaseService.log_performance
    def expire_stale_sessions(self) -> ServiceResult[int]:
        expired = AgeVerificationSession.objects.filter(status="pending", expires_at__lt=timezone.now()).update(
            status="expired", updated_at=timezone.now()
        )
        if expired:
            self.logger.info(f"Expired {expired} stale age verification sessions")
        return service_ok(expired)

    def get_statistics(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> ServiceResult[Dict]:
        sessions = AgeVerificationSession.objects.all()
        if start:
            sessions = sessions.filter(created_at__gte=start)
        if end:
            sessions = sessions.filter(created_at__lte=end)
        by_status = {row["status"]: row["count"] for row in sessions.values("status").annotate(count=Count("id"))}
        by_method = {row["method"]: row["count"] for row in sessions.values("method").annotate(count=Count("id"))}
        average = sessions.filter(status="verified").aggregate(avg=Avg("verified_age"))["avg"]

        return service_ok(
            {
                "total": sum(by_status.values()),
                "verified": by_status.get("verified", 0),
                "failed": by_status.get("failed", 0),
                "pending": by_status.get("pending", 0),
                "expired": by_status.get("expired", 0),
                "by_method": by_method,
                "average_age": (
                    Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP) if average is not None else None
                ),
            }
        )
