from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

MONEY = dict(max_digits=18, decimal_places=2)

PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("transfer", "Bank transfer"),
    ("cheque", "Cheque"),
    ("pos", "POS"),
    ("other", "Other"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("category", models.CharField(choices=[("asset", "Asset"), ("liability", "Liability"), ("equity", "Equity"), ("revenue", "Revenue"), ("expense", "Expense")], max_length=10)),
                ("subtype", models.CharField(blank=True, choices=[("current", "Current"), ("fixed", "Fixed"), ("owner", "Owner"), ("sales", "Sales"), ("cogs", "Cost of Sales"), ("operating", "Operating"), ("tax", "Tax"), ("other", "Other")], default="", max_length=20)),
                ("opening_balance", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("current_balance", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="ledger_core.account")),
            ],
            options={
                "ordering": ("code",),
                "indexes": [models.Index(fields=["category"], name="idx_account_category")],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive"), ("blacklisted", "Blacklisted")], default="active", max_length=12)),
                ("credit_limit", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("outstanding_balance", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name",),
                "indexes": [models.Index(fields=["status"], name="idx_customer_status")],
            },
        ),
        migrations.CreateModel(
            name="FiscalYear",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("is_current", models.BooleanField(default=False)),
                ("is_closed", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("start_date",),
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_current", True)), fields=("is_current",), name="uq_single_current_fiscal_year"),
                    models.CheckConstraint(condition=models.Q(models.Q(("is_current", True), ("is_closed", True)), _negated=True), name="fy_closed_never_current"),
                    models.CheckConstraint(condition=models.Q(("end_date__gte", models.F("start_date"))), name="fy_end_not_before_start"),
                ],
            },
        ),
        migrations.CreateModel(
            name="NumberSeries",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("scope", models.CharField(choices=[("journal", "Journal entry"), ("invoice", "Invoice"), ("prepayment", "Customer prepayment")], max_length=20)),
                ("prefix", models.CharField(max_length=20)),
                ("year", models.PositiveIntegerField()),
                ("next_number", models.PositiveIntegerField(default=1)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("scope", "prefix", "year"), name="uq_number_series_scope"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=40, unique=True)),
                ("date", models.DateField()),
                ("reference", models.CharField(blank=True, default="", max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("total_debit", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("total_credit", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("auto_generated", models.BooleanField(default=False)),
                ("source_type", models.CharField(blank=True, default="", max_length=50)),
                ("source_id", models.BigIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("posted_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ("date", "id"),
                "indexes": [
                    models.Index(fields=["date"], name="idx_je_date"),
                    models.Index(fields=["source_type", "source_id"], name="idx_je_source"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("total_debit", models.F("total_credit"))), name="je_totals_balanced"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("debit", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("credit", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_lines", to="ledger_core.account")),
                ("entry", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("id",),
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="jl_non_negative_amounts"),
                    models.CheckConstraint(condition=models.Q(models.Q(("debit", 0), ("credit", 0)), _negated=True), name="jl_debit_or_credit_nonzero"),
                    models.CheckConstraint(condition=models.Q(models.Q(("debit__gt", 0), ("credit__gt", 0)), _negated=True), name="jl_not_both_debit_and_credit"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=40, unique=True)),
                ("invoice_date", models.DateField()),
                ("due_date", models.DateField(blank=True, null=True)),
                ("sub_total", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("vat_amount", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("total_amount", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("paid_amount", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("prepayment_applied", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("status", models.CharField(choices=[("unpaid", "Unpaid"), ("partial", "Partially paid"), ("paid", "Paid"), ("overdue", "Overdue"), ("cancelled", "Cancelled")], default="unpaid", max_length=10)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="ledger_core.customer")),
                ("journal_entry", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("invoice_date", "id"),
                "indexes": [models.Index(fields=["customer", "status"], name="idx_invoice_customer_status")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("paid_amount__gte", 0), ("prepayment_applied__gte", 0)), name="inv_settlements_non_negative"),
                    models.CheckConstraint(condition=models.Q(("paid_amount__lte", models.F("total_amount") - models.F("prepayment_applied"))), name="inv_not_oversettled"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoicePayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(**MONEY)),
                ("payment_date", models.DateField()),
                ("method", models.CharField(blank=True, choices=PAYMENT_METHODS, default="", max_length=10)),
                ("reference", models.CharField(blank=True, default="", max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="ledger_core.invoice")),
                ("journal_entry", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("payment_date", "id"),
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="invpay_amount_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CustomerPrepayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=40, unique=True)),
                ("date", models.DateField()),
                ("amount", models.DecimalField(**MONEY)),
                ("used_amount", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("status", models.CharField(choices=[("active", "Active"), ("exhausted", "Exhausted")], default="active", max_length=10)),
                ("payment_method", models.CharField(blank=True, choices=PAYMENT_METHODS, default="", max_length=10)),
                ("reference", models.CharField(blank=True, default="", max_length=200)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="prepayments", to="ledger_core.customer")),
                ("journal_entry", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("date", "id"),
                "indexes": [models.Index(fields=["customer", "status"], name="idx_prepay_customer_status")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="prepay_amount_positive"),
                    models.CheckConstraint(condition=models.Q(("used_amount__gte", 0), ("used_amount__lte", models.F("amount"))), name="prepay_used_within_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PrepaymentApplication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("applied_amount", models.DecimalField(**MONEY)),
                ("applied_date", models.DateField()),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="prepayment_applications", to="ledger_core.invoice")),
                ("journal_entry", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journalentry")),
                ("prepayment", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="applications", to="ledger_core.customerprepayment")),
                ("reverses", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversal", to="ledger_core.prepaymentapplication")),
            ],
            options={
                "ordering": ("applied_date", "id"),
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("applied_amount", 0), _negated=True), name="prepapp_amount_nonzero"),
                    models.CheckConstraint(condition=models.Q(models.Q(("applied_amount__gt", 0), ("reverses__isnull", True)), models.Q(("applied_amount__lt", 0), ("reverses__isnull", False)), _connector="OR"), name="prepapp_sign_matches_reversal"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AccountFiscalYearBalance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("opening_balance", models.DecimalField(default=Decimal("0.00"), **MONEY)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="fiscal_year_balances", to="ledger_core.account")),
                ("fiscal_year", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="opening_balances", to="ledger_core.fiscalyear")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("account", "fiscal_year"), name="uq_account_fiscal_year"),
                ],
            },
        ),
    ]
