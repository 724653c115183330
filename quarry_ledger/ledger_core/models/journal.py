from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from ..managers import JournalLineManager
from .account import Account


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):
    """
    One balanced accounting transaction.

    Rows are only ever created through services.posting.post_journal(),
    which validates the lines, allocates the number and refreshes
    balances. There is no edit path; deletes are blocked in signals.py.
    """

    # "{PREFIX}/{YEAR}/{seq:04d}", e.g. "ADV/2025/0003"
    number = models.CharField(max_length=40, unique=True)
    date = models.DateField()
    reference = models.CharField(max_length=200, blank=True, default="")
    description = models.TextField(blank=True, default="")

    # Denormalised from the lines at posting time
    total_debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # True for postings emitted by business events (invoice, payroll, ...)
    auto_generated = models.BooleanField(default=False)

    # optional trace back to the business object that caused the entry
    source_type = models.CharField(max_length=50, blank=True, default="")
    source_id = models.BigIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("date", "id")
        verbose_name_plural = "journal entries"
        indexes = [
            models.Index(fields=["date"], name="idx_je_date"),
            models.Index(fields=["source_type", "source_id"], name="idx_je_source"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_debit=models.F("total_credit")),
                name="je_totals_balanced",
            ),
        ]

    def __str__(self):
        return f"{self.number} {self.date}"

    # Aggregate all debit and credit amounts across entry's lines
    def compute_totals(self):
        """Return debits, credits sums for lines"""
        return self.lines.totals()

    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit


class JournalLine(models.Model):
    """Exactly one of debit / credit is non-zero."""

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    # can't delete an account once lines reference it
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="journal_lines"
    )
    debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    description = models.CharField(max_length=400, blank=True, default="")

    objects = JournalLineManager()

    class Meta:
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jl_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=~(models.Q(debit=0) & models.Q(credit=0)),
                name="jl_debit_or_credit_nonzero",
            ),
            models.CheckConstraint(
                condition=~(models.Q(debit__gt=0) & models.Q(credit__gt=0)),
                name="jl_not_both_debit_and_credit",
            ),
        ]

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.account.code} {side}"

    @property
    def signed_amount(self):
        """Positive for a debit, negative for a credit."""
        return self.debit - self.credit

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit/credit must be non-negative.")
        if (self.debit > 0) == (self.credit > 0):
            raise ValidationError(
                "A journal line must have either a debit or a credit, not both."
            )
