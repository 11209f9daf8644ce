from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError

from marketplace.payouts.domain.services import PayoutService


class Command(BaseCommand):
    help = "Creates payouts for vendors with collected commissions and optionally sends them."

    def add_arguments(self, parser):
        parser.add_argument("--vendor", action="append", dest="vendor_ids", help="Limit to this vendor id (repeatable)")
        parser.add_argument("--min-amount", type=Decimal, default=None, help="Skip vendors owed less than this")
        parser.add_argument("--process", action="store_true", help="Send each created payout immediately")

    def handle(self, *args, **options):
        service = PayoutService()
        result = service.create_batch_payouts(vendor_ids=options["vendor_ids"], min_amount=options["min_amount"])
        if not result.ok:
            raise CommandError(f"Batch payouts failed: {result.error_detail}")

        summary = result.value
        for entry in summary["results"]:
            if entry["status"] == "created":
                self.stdout.write(
                    self.style.SUCCESS(f"Vendor {entry['vendor_id']}: payout {entry['payout_id']} for {entry['amount']}")
                )
                if options["process"]:
                    processed = service.process_payout(entry["payout_id"])
                    if processed.ok:
                        self.stdout.write(self.style.SUCCESS(f"  sent as {processed.value.transfer_id}"))
                    else:
                        self.stdout.write(self.style.ERROR(f"  transfer failed: {processed.error_detail}"))
            elif entry["status"] == "skipped":
                self.stdout.write(self.style.WARNING(f"Vendor {entry['vendor_id']}: skipped ({entry['reason']})"))
            else:
                self.stdout.write(self.style.ERROR(f"Vendor {entry['vendor_id']}: {entry['detail']}"))

        self.stdout.write(
            self.style.SUCCESS(
                f"Created {summary['created']} payouts totalling {summary['total_amount']} "
                f"({summary['skipped']} skipped, {summary['failed']} failed)."
            )
        )
