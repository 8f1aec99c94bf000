from django.core.management.base import BaseCommand

from ledger_core.tasks import rebuild_inventory_projection


class Command(BaseCommand):
    help = "Recomputes the inventory projection from receipt lines."

    def add_arguments(self, parser):
        parser.add_argument(
            "--async",  # Define flag
            action="store_true",
            dest="run_async",
            help="Queue the rebuild on the Celery worker instead of running it here",
        )

    def handle(self, *args, **options):
        if options["run_async"]:
            result = rebuild_inventory_projection.delay()
            self.stdout.write(self.style.NOTICE(f"Rebuild queued as task {result.id}"))
            return

        self.stdout.write(self.style.NOTICE("Rebuilding inventory projection..."))
        count = rebuild_inventory_projection()
        self.stdout.write(self.style.SUCCESS(f"Rebuilt {count} inventory items."))
