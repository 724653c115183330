from decimal import Decimal

from django.db import models
from django.db.models.functions import Coalesce

ZERO = Decimal("0.00")


# -----------------------------------------
# Chart of accounts
# -----------------------------------------
class AccountQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def by_code(self, code):
        return self.get(code=code)

    # Per-customer sub-accounts hang off a base account (1101, 2103)
    def children_of(self, code):
        return self.filter(parent__code=code)


class AccountManager(models.Manager.from_queryset(AccountQuerySet)):
    pass


# -----------------------------------------
# Journal lines
# -----------------------------------------
class JournalLineQuerySet(models.QuerySet):
    def for_account(self, account_id):
        return self.filter(account_id=account_id)

    def between(self, start, end):
        return self.filter(entry__date__gte=start, entry__date__lte=end)

    def totals(self):
        """Return (debit, credit) sums for the queryset, zero when empty."""
        aggs = self.aggregate(
            total_debit=Coalesce(models.Sum("debit"), ZERO, output_field=models.DecimalField()),
            total_credit=Coalesce(models.Sum("credit"), ZERO, output_field=models.DecimalField()),
        )
        return aggs["total_debit"], aggs["total_credit"]

    # One row per account: {"account_id", "total_debit", "total_credit"}
    def totals_by_account(self):
        return self.values("account_id").annotate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )


class JournalLineManager(models.Manager.from_queryset(JournalLineQuerySet)):
    pass


# -----------------------------------------
# Prepayment wallet
# -----------------------------------------
class PrepaymentQuerySet(models.QuerySet):
    def for_customer(self, customer_id):
        return self.filter(customer_id=customer_id)

    def active(self):
        return self.filter(status="active")

    def available_balance(self):
        """Σ (amount - used_amount) over the queryset."""
        aggs = self.aggregate(
            balance=Coalesce(
                models.Sum(models.F("amount") - models.F("used_amount")),
                ZERO,
                output_field=models.DecimalField(),
            )
        )
        return aggs["balance"]


class PrepaymentManager(models.Manager.from_queryset(PrepaymentQuerySet)):
    pass


# -----------------------------------------
# Fiscal years
# -----------------------------------------
class FiscalYearQuerySet(models.QuerySet):
    def current(self):
        return self.filter(is_current=True).first()

    def containing(self, day):
        return self.filter(start_date__lte=day, end_date__gte=day)

    # Inclusive range overlap: start <= other.end and end >= other.start
    def overlapping(self, start, end):
        return self.filter(start_date__lte=end, end_date__gte=start)


class FiscalYearManager(models.Manager.from_queryset(FiscalYearQuerySet)):
    pass
