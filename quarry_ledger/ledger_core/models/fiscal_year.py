from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import FiscalYearManager
from .account import Account


# ---------- Fiscal year ----------
class FiscalYear(models.Model):
    """
    Inclusive [start_date, end_date] range. Ranges never overlap,
    at most one year is current, and a closed year is never current.
    Transitions go through services.fiscal_years.
    """

    code = models.CharField(max_length=20, unique=True)  # Example: "FY2025"
    start_date = models.DateField()
    end_date = models.DateField()
    is_current = models.BooleanField(default=False)
    # When is_closed=True no postings dated inside the range are accepted
    is_closed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = FiscalYearManager()

    class Meta:
        ordering = ("start_date",)
        constraints = [
            models.UniqueConstraint(
                fields=["is_current"],
                condition=models.Q(is_current=True),
                name="uq_single_current_fiscal_year",
            ),
            models.CheckConstraint(
                condition=~(models.Q(is_current=True) & models.Q(is_closed=True)),
                name="fy_closed_never_current",
            ),
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="fy_end_not_before_start",
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.start_date} – {self.end_date})"

    def contains(self, day):
        return self.start_date <= day <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("end_date cannot be before start_date")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class AccountFiscalYearBalance(models.Model):
    """Opening balance of one account for one fiscal year."""

    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="fiscal_year_balances"
    )
    fiscal_year = models.ForeignKey(
        FiscalYear, on_delete=models.PROTECT, related_name="opening_balances"
    )
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["account", "fiscal_year"], name="uq_account_fiscal_year"
            )
        ]

    def __str__(self):
        return f"{self.account.code} {self.fiscal_year.code}: {self.opening_balance}"
