from django.core.management.base import BaseCommand, CommandError

from ledger_core.conf import ledger_setting
from ledger_core.services.accounts import missing_system_accounts


class Command(BaseCommand):
    help = "Verifies that every configured system account exists and is active."

    def handle(self, *args, **options):
        problems = missing_system_accounts()
        for key, code, problem in problems:
            self.stderr.write(self.style.ERROR(f"{key:<18} {code:<8} {problem}"))
        if problems:
            raise CommandError(
                f"{len(problems)} system account(s) unusable; "
                "run `manage.py seed_chart_of_accounts` or fix settings.LEDGER.")

        for key, code in sorted(ledger_setting("SYSTEM_ACCOUNTS").items()):
            self.stdout.write(f"{key:<18} {code:<8} ok")
        self.stdout.write(self.style.SUCCESS(
            f"Ledger configuration OK (posting policy: "
            f"{ledger_setting('AUXILIARY_POSTING_POLICY')})."))
