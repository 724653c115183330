from decimal import Decimal

from django.db import models

from ..managers import PrepaymentManager
from .customer import Customer
from .invoice import PAYMENT_METHOD_CHOICES, Invoice
from .journal import JournalEntry

PREPAYMENT_STATUS_CHOICES = [
    ("active", "Active"),  # money left in the wallet
    ("exhausted", "Exhausted"),  # amount - used_amount <= 0
]


class CustomerPrepayment(models.Model):
    """
    Money received from a customer ahead of invoicing.
    used_amount mirrors the sum of its applications, clamped to amount;
    services.prepayments re-sums it under lock before every balance check.
    """

    number = models.CharField(max_length=40, unique=True)  # "ADV/2025/0001"
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="prepayments"
    )
    date = models.DateField()
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    used_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=10, choices=PREPAYMENT_STATUS_CHOICES, default="active"
    )
    payment_method = models.CharField(
        max_length=10, choices=PAYMENT_METHOD_CHOICES, blank=True, default=""
    )
    reference = models.CharField(max_length=200, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    # ADV receipt; empty while waiting for backfill
    journal_entry = models.ForeignKey(
        JournalEntry,
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PrepaymentManager()

    class Meta:
        ordering = ("date", "id")
        indexes = [
            models.Index(fields=["customer", "status"], name="idx_prepay_customer_status"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="prepay_amount_positive"
            ),
            models.CheckConstraint(
                condition=models.Q(used_amount__gte=0)
                & models.Q(used_amount__lte=models.F("amount")),
                name="prepay_used_within_amount",
            ),
        ]

    def __str__(self):
        return f"{self.number} ({self.customer})"

    @property
    def remaining_amount(self):
        return self.amount - self.used_amount

    def derived_status(self):
        return "exhausted" if self.remaining_amount <= 0 else "active"


class PrepaymentApplication(models.Model):
    """
    Append-only: a positive row applies wallet money to an invoice, a
    negative row (with ``reverses`` set) compensates an earlier one.
    """

    prepayment = models.ForeignKey(
        CustomerPrepayment, on_delete=models.PROTECT, related_name="applications"
    )
    invoice = models.ForeignKey(
        Invoice, on_delete=models.PROTECT, related_name="prepayment_applications"
    )
    applied_amount = models.DecimalField(max_digits=18, decimal_places=2)
    applied_date = models.DateField()
    description = models.CharField(max_length=400, blank=True, default="")
    reverses = models.OneToOneField(
        "self",
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name="reversal",
    )
    journal_entry = models.ForeignKey(
        JournalEntry,
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("applied_date", "id")
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(applied_amount=0),
                name="prepapp_amount_nonzero",
            ),
            # negative rows exist only as reversals
            models.CheckConstraint(
                condition=models.Q(applied_amount__gt=0, reverses__isnull=True)
                | models.Q(applied_amount__lt=0, reverses__isnull=False),
                name="prepapp_sign_matches_reversal",
            ),
        ]

    def __str__(self):
        return f"{self.prepayment.number} → {self.invoice.number}: {self.applied_amount}"

    @property
    def is_reversal(self):
        return self.reverses_id is not None
