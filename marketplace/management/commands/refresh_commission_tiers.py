from django.core.management.base import BaseCommand, CommandError

from marketplace.commissions.domain.services import CommissionService


class Command(BaseCommand):
    help = "Re-evaluates commission tiers of active shops from their recent monthly sales."

    def add_arguments(self, parser):
        parser.add_argument("--vendor", dest="vendor_id", help="Only re-tier this vendor")

    def handle(self, *args, **options):
        service = CommissionService()

        if options["vendor_id"]:
            result = service.update_vendor_tier(options["vendor_id"])
            if not result.ok:
                raise CommandError(result.error_detail)
            value = result.value
            message = f"Vendor {options['vendor_id']}: {value['previous_tier']} -> {value['tier']}"
            self.stdout.write(self.style.SUCCESS(message) if value["changed"] else message)
            return

        result = service.refresh_all_tiers()
        if not result.ok:
            raise CommandError(result.error_detail)
        summary = result.value
        self.stdout.write(
            self.style.SUCCESS(
                f"Evaluated {summary['evaluated']} shops: {summary['changed']} changed, {summary['failed']} failed."
            )
        )
