"""
Recalculate consumption tracking from completed production.

Meant to run daily from cron.

Usage:
    python manage.py recalculate_consumption
    python manage.py recalculate_consumption --item 12
"""

from django.core.management.base import BaseCommand, CommandError

from bakeplan.exceptions import NotFound
from bakeplan.services.consumption import ConsumptionRecalculationJob


class Command(BaseCommand):
    help = "Recalculate average daily consumption for inventory items"

    def add_arguments(self, parser):
        parser.add_argument(
            "--item",
            type=int,
            help="Only recalculate this inventory item id",
        )

    def handle(self, *args, **options):
        item_id = options.get("item")

        if item_id is not None:
            try:
                tracking = ConsumptionRecalculationJob.recalculate(item_id)
            except NotFound as e:
                raise CommandError(str(e))
            self.stdout.write(
                self.style.SUCCESS(
                    f"Inventory item {item_id}: {tracking.avg_daily_consumption}/day "
                    f"({tracking.sample_size} production items)"
                )
            )
            return

        summary = ConsumptionRecalculationJob.recalculate_all()
        message = f"Processed {summary.processed}, succeeded {summary.succeeded}, failed {summary.failed}"
        if summary.failed:
            self.stdout.write(self.style.WARNING(message))
        else:
            self.stdout.write(self.style.SUCCESS(message))
