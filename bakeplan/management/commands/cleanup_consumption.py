"""
Prune orphaned consumption tracking rows and report stale ones.

Meant to run weekly from cron.

Usage:
    python manage.py cleanup_consumption
"""

from django.core.management.base import BaseCommand

from bakeplan.services.consumption import ConsumptionRecalculationJob


class Command(BaseCommand):
    help = "Remove orphaned consumption tracking rows and list stale ones"

    def handle(self, *args, **options):
        summary = ConsumptionRecalculationJob.cleanup()

        self.stdout.write(f"Orphaned records removed: {summary.orphans_removed}")
        if summary.stale:
            ids = ", ".join(str(i) for i in summary.stale)
            self.stdout.write(self.style.WARNING(f"Stale records: {ids}"))
        else:
            self.stdout.write(self.style.SUCCESS("No stale records"))
