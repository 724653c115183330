from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import AccountManager

# Choice Lists
CATEGORY_CHOICES = [
    # Drives the sign of the running balance (see debit_increases)
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
    ("revenue", "Revenue"),
    ("expense", "Expense"),
]

# Categories whose balance grows with debits; the rest grow with credits
DEBIT_NORMAL_CATEGORIES = ("asset", "expense")

SUBTYPE_CHOICES = [
    ("current", "Current"),
    ("fixed", "Fixed"),
    ("owner", "Owner"),
    ("sales", "Sales"),
    ("cogs", "Cost of Sales"),
    ("operating", "Operating"),
    ("tax", "Tax"),
    ("other", "Other"),
]


class Account(models.Model):
    """
    One ledger account in the chart of accounts.
    - code is unique across the ledger ("1001", "2103-000007")
    - category decides on which side the balance grows
    - current_balance is a cache owned by the balance recalculator
    """

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=10, choices=CATEGORY_CHOICES)
    subtype = models.CharField(
        max_length=20, choices=SUBTYPE_CHOICES, blank=True, default=""
    )

    # Per-customer sub-accounts point at their base account (1101, 2103)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        related_name="children",
        on_delete=models.PROTECT,
    )

    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # opening + signed movement; never written outside services.balances
    current_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # Accounts are deactivated, never deleted
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AccountManager()

    class Meta:
        ordering = ("code",)
        indexes = [
            models.Index(fields=["category"], name="idx_account_category"),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def debit_increases(self):
        return self.category in DEBIT_NORMAL_CATEGORIES

    def signed_movement(self, total_debit, total_credit):
        """Net movement expressed in the account's own direction."""
        if self.debit_increases:
            return total_debit - total_credit
        return total_credit - total_debit

    def clean(self):
        if self.parent_id and self.parent_id == self.pk:
            raise ValidationError("An account cannot be its own parent.")
        if self.parent and self.parent.category != self.category:
            raise ValidationError(
                "Sub-account must share its parent's category."
            )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
