from django.core.management.base import BaseCommand

from ledger_core.services import backfill_missing_postings


class Command(BaseCommand):
    help = "Posts journal entries that best-effort postings failed to write."

    def handle(self, *args, **options):
        summary = backfill_missing_postings()
        failed = summary.pop("failed")
        for label, count in summary.items():
            self.stdout.write(f"{label:<25} {count}")
        if failed:
            self.stdout.write(self.style.WARNING(f"{failed} record(s) still failing; see the log."))
        else:
            self.stdout.write(self.style.SUCCESS("Ledger gaps closed."))
