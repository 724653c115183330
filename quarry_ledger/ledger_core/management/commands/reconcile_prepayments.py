from django.core.management.base import BaseCommand

from ledger_core.services import reconcile_prepayments


class Command(BaseCommand):
    help = "Re-derives prepayment used amounts and statuses from their applications."

    def add_arguments(self, parser):
        parser.add_argument("--customer", type=int, help="Limit to one customer id")

    def handle(self, *args, **options):
        corrected = reconcile_prepayments(options["customer"])
        style = self.style.WARNING if corrected else self.style.SUCCESS
        self.stdout.write(style(f"{corrected} prepayment(s) corrected."))
