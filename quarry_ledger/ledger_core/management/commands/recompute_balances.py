from django.core.management.base import BaseCommand

from ledger_core.services import recompute_all_balances, recompute_balance
from ledger_core.tasks import recompute_all_balances_task


class Command(BaseCommand):
    help = "Rebuilds cached account balances from the journal lines."

    def add_arguments(self, parser):
        parser.add_argument("--account", type=int, help="Only this account id")
        parser.add_argument(
            "--async", action="store_true", dest="run_async",
            help="Queue the Celery task instead of running inline",
        )

    def handle(self, *args, **options):
        if options["account"]:
            balance = recompute_balance(options["account"])
            if balance is None:
                self.stderr.write(self.style.WARNING("No such account."))
                return
            self.stdout.write(self.style.SUCCESS(f"Balance: {balance}"))
            return

        if options["run_async"]:
            result = recompute_all_balances_task.delay()
            self.stdout.write(self.style.NOTICE(f"Queued task {result.id}"))
            return

        count = recompute_all_balances()
        self.stdout.write(self.style.SUCCESS(f"Recomputed {count} account(s)."))
