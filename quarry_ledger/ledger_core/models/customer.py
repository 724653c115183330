from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

CUSTOMER_STATUS_CHOICES = [
    ("active", "Active"),
    ("inactive", "Inactive"),
    ("blacklisted", "Blacklisted"),
]


# ---------- Customer ----------
# Only the ledger-relevant slice of the customer master record
class Customer(models.Model):
    name = models.CharField(max_length=200)
    status = models.CharField(
        max_length=12, choices=CUSTOMER_STATUS_CHOICES, default="active"
    )
    credit_limit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Raised by invoices, lowered by payments and prepayment applications
    outstanding_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)
        indexes = [models.Index(fields=["status"], name="idx_customer_status")]

    def __str__(self):
        return self.name

    @property
    def is_active(self):
        return self.status == "active"

    @property
    def available_credit(self):
        return max(Decimal("0.00"), self.credit_limit - self.outstanding_balance)

    def clean(self):
        if self.credit_limit is not None and self.credit_limit < 0:
            raise ValidationError("Credit limit cannot be negative.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
