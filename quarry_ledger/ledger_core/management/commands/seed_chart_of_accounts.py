from django.core.management.base import BaseCommand
from django.db import transaction

from ledger_core.models import Account

# (code, name, category, subtype)
CHART_OF_ACCOUNTS = [
    # Assets
    ("1001", "Cash & Bank Balances", "asset", "current"),
    ("1101", "Accounts Receivable", "asset", "current"),
    ("1201", "Raw Material Stock", "asset", "current"),
    ("1501", "Plant & Machinery", "asset", "fixed"),
    # Liabilities
    ("2001", "Accounts Payable", "liability", "current"),
    ("2101", "VAT Output Tax", "liability", "tax"),
    ("2102", "VAT Input Tax", "asset", "tax"),
    ("2103", "Customer Prepayments", "liability", "current"),
    ("2201", "Salaries Payable", "liability", "current"),
    ("2202", "PAYE Payable", "liability", "tax"),
    ("2203", "Pension Payable", "liability", "current"),
    ("2204", "NHIS Payable", "liability", "current"),
    ("2205", "NHF Payable", "liability", "current"),
    # Equity
    ("3001", "Owner's Equity", "equity", "owner"),
    ("3101", "Retained Earnings", "equity", "owner"),
    # Revenue
    ("4001", "Sale of Aggregates", "revenue", "sales"),
    ("4002", "Transport & Delivery Income", "revenue", "sales"),
    ("4003", "Other Operating Income", "revenue", "other"),
    # Cost of sales
    ("5001", "Cost of Aggregates Sold", "expense", "cogs"),
    ("5002", "Blasting & Explosives", "expense", "cogs"),
    ("5003", "Diesel & Fuel", "expense", "cogs"),
    # Operating expenses
    ("6001", "Salaries & Wages", "expense", "operating"),
    ("6002", "Repairs & Maintenance", "expense", "operating"),
    ("6003", "Utilities", "expense", "operating"),
    ("6004", "Depreciation", "expense", "operating"),
    ("6005", "General & Administrative", "expense", "operating"),
]


class Command(BaseCommand):
    help = "Creates the standard quarry chart of accounts (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--update-names",
            action="store_true",
            help="Also rename existing accounts to the standard names",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        created = 0
        for code, name, category, subtype in CHART_OF_ACCOUNTS:
            account, was_created = Account.objects.get_or_create(
                code=code,
                defaults={"name": name, "category": category, "subtype": subtype},
            )
            if was_created:
                created += 1
            elif options["update_names"] and account.name != name:
                account.name = name
                account.save(update_fields=["name", "updated_at"])

        self.stdout.write(self.style.SUCCESS(
            f"Chart of accounts ready: {created} created, "
            f"{len(CHART_OF_ACCOUNTS) - created} already present."))
