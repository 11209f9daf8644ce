"""
Celery Tasks for the Vendor Marketplace

Scheduled from vendorhubBackend.celery:
- create_batch_payouts: weekly payout cycle
- refresh_commission_tiers: re-tier shops on their recent sales
- expire_age_verification_sessions: hourly cleanup
"""

import logging

from celery import shared_task

from marketplace.commissions.domain.services import CommissionService
from marketplace.compliance.domain.services import AgeVerificationService
from marketplace.payouts.domain.services import PayoutService
from marketplace.services.base import ErrorCodes


logger = logging.getLogger(__name__)


@shared_task(name="marketplace.create_batch_payouts")
def create_batch_payouts(vendor_ids=None, min_amount=None):
    """
    Create payouts for eligible vendors and queue a transfer for each.
    Typically scheduled to run weekly (Mondays).
    """
    logger.info("Starting batch payout cycle...")
    try:
        service = PayoutService()
        result = service.create_batch_payouts(vendor_ids=vendor_ids, min_amount=min_amount)

        if not result.ok:
            logger.error(f"Batch payouts failed: {result.error}")
            return {"success": False, "error": result.error}

        for entry in result.value["results"]:
            if entry["status"] == "created":
                process_payout.delay(entry["payout_id"])

        logger.info(
            f"Batch payouts completed. Created: {result.value['created']}, "
            f"skipped: {result.value['skipped']}, failed: {result.value['failed']}"
        )
        return {
            "success": True,
            "created": result.value["created"],
            "skipped": result.value["skipped"],
            "failed": result.value["failed"],
            "total_amount": str(result.value["total_amount"]),
        }

    except Exception as e:
        logger.error(f"Error in create_batch_payouts task: {e}", exc_info=True)
        raise


@shared_task(bind=True, max_retries=3, name="marketplace.process_payout")
def process_payout(self, payout_id):
    """
    Send one pending payout to the payment provider.

    Internal errors are retried; a provider rejection marks the payout
    failed and is final.
    """
    result = PayoutService().process_payout(payout_id)

    if result.ok:
        return {"success": True, "payout_id": str(payout_id), "transfer_id": result.value.transfer_id}

    if result.error == ErrorCodes.INTERNAL_ERROR:
        logger.warning(f"Retrying payout {payout_id}: {result.error_detail}")
        raise self.retry(countdown=60 * (self.request.retries + 1))

    logger.error(f"Payout {payout_id} not processed: {result.error} ({result.error_detail})")
    return {"success": False, "payout_id": str(payout_id), "error": result.error}


@shared_task(name="marketplace.refresh_commission_tiers")
def refresh_commission_tiers():
    """Re-evaluate every shop's commission tier on its recent monthly sales."""
    try:
        result = CommissionService().refresh_all_tiers()
        if not result.ok:
            logger.error(f"Commission tier refresh failed: {result.error}")
            return {"success": False, "error": result.error}

        logger.info(f"Commission tiers refreshed: {result.value}")
        return {"success": True, **result.value}

    except Exception as e:
        logger.error(f"Error in refresh_commission_tiers task: {e}", exc_info=True)
        raise


@shared_task(name="marketplace.expire_age_verification_sessions")
def expire_age_verification_sessions():
    result = AgeVerificationService().expire_stale_sessions()
    return {"success": result.ok, "expired": result.value if result.ok else 0}
