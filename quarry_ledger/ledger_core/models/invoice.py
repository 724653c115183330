from decimal import Decimal

from django.db import models

from .customer import Customer
from .journal import JournalEntry

INV_STATUS_CHOICES = [
    ("unpaid", "Unpaid"),
    ("partial", "Partially paid"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
    ("cancelled", "Cancelled"),
]

PAYMENT_METHOD_CHOICES = [
    ("cash", "Cash"),
    ("transfer", "Bank transfer"),
    ("cheque", "Cheque"),
    ("pos", "POS"),
    ("other", "Other"),
]


class Invoice(models.Model):
    """
    Sales invoice as far as the ledger cares about it.
    Status is derived in services.invoicing.derive_status();
    only cancellation sets it explicitly.
    """

    number = models.CharField(max_length=40, unique=True)  # "INV/2025/0001"
    customer = models.ForeignKey(
        Customer,
        # prevent deleting a customer who has invoices
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    invoice_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)

    sub_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    vat_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Settled in cash vs. settled from the prepayment wallet
    paid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    prepayment_applied = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="unpaid"
    )
    notes = models.TextField(blank=True, default="")

    # Sales posting; empty while a best-effort posting is waiting for backfill
    journal_entry = models.ForeignKey(
        JournalEntry,
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    # REV entry undoing the sale once the invoice is cancelled
    reversal_entry = models.ForeignKey(
        JournalEntry,
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("invoice_date", "id")
        indexes = [
            models.Index(fields=["customer", "status"], name="idx_invoice_customer_status"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=0)
                & models.Q(prepayment_applied__gte=0),
                name="inv_settlements_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(
                    paid_amount__lte=models.F("total_amount")
                    - models.F("prepayment_applied")
                ),
                name="inv_not_oversettled",
            ),
        ]

    def __str__(self):
        return f"Inv {self.number}"

    @property
    def settled_amount(self):
        return self.paid_amount + self.prepayment_applied

    @property
    def remaining_amount(self):
        # capped at 0 so a rounding slip never reports negative receivables
        return max(self.total_amount - self.settled_amount, Decimal("0.00"))


class InvoicePayment(models.Model):
    """Append-only record of a cash payment against an invoice."""

    invoice = models.ForeignKey(
        Invoice, on_delete=models.PROTECT, related_name="payments"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_date = models.DateField()
    method = models.CharField(
        max_length=10, choices=PAYMENT_METHOD_CHOICES, blank=True, default=""
    )
    reference = models.CharField(max_length=200, blank=True, default="")
    journal_entry = models.ForeignKey(
        JournalEntry,
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("payment_date", "id")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="invpay_amount_positive"
            ),
        ]

    def __str__(self):
        return f"{self.invoice.number} paid {self.amount}"
