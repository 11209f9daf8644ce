from typing import Dict, List

from django.core.exceptions import ValidationError

from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from marketplace.vendors.domain.models import Vendor


# (step, label, required, completion check)
ONBOARDING_STEPS = [
    (
        "basic_information",
        "Basic information",
        True,
        lambda vendor: bool(vendor.name and vendor.email and vendor.vendor_type),
    ),
    (
        "address_verification",
        "Business address",
        True,
        lambda vendor: bool(vendor.address_line_1 and vendor.city and vendor.postal_code and vendor.country_code),
    ),
    (
        "tax_information",
        "Tax information",
        True,
        lambda vendor: bool(vendor.tax_id),
    ),
    (
        "stripe_connect",
        "Payout account",
        True,
        lambda vendor: bool(vendor.stripe_account_id and vendor.stripe_onboarding_completed),
    ),
    (
        "business_verification",
        "Business verification",
        False,
        lambda vendor: vendor.verified_at is not None,
    ),
]


class OnboardingService(BaseService):
    """Reports how far a vendor is through onboarding, from the vendor record alone."""

    def get_onboarding_status(self, vendor_id) -> ServiceResult[Dict]:
        try:
            vendor = Vendor.objects.get(id=vendor_id)
        except (Vendor.DoesNotExist, ValidationError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")

        return service_ok(self.build_status(vendor))

    def build_status(self, vendor: Vendor) -> Dict:
        steps = [
            {"step": step, "label": label, "completed": check(vendor), "required": required}
            for step, label, required, check in ONBOARDING_STEPS
        ]

        blockers: List[str] = []
        if vendor.status == "suspended":
            blockers.append("Vendor account is suspended")

        required_steps = [step for step in steps if step["required"]]
        completed_steps = [step for step in steps if step["completed"]]

        if blockers:
            overall = "blocked"
        elif all(step["completed"] for step in required_steps):
            overall = "completed"
        elif completed_steps:
            overall = "in_progress"
        else:
            overall = "not_started"

        next_step = next((step["step"] for step in required_steps if not step["completed"]), None)

        return {
            "vendor_id": str(vendor.id),
            "status": overall,
            "steps": steps,
            "completed_steps": len(completed_steps),
            "total_steps": len(steps),
            "progress_percent": int(len(completed_steps) * 100 / len(steps)),
            "next_step": next_step,
            "blockers": blockers,
        }
