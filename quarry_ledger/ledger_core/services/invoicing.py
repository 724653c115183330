import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from ..conf import ledger_setting
from ..exceptions import (InvalidAmountError, InvoiceAlreadySettledError,
                          InvoiceHasPaymentsError, UnknownCustomerError,
                          UnknownInvoiceError)
from ..models import Customer, Invoice, InvoicePayment
from .accounts import ensure_customer_receivable_account, get_system_account
from .numbering import create_numbered
from .posting import (EntryLine, JournalDraft, post_journal,
                      reverse_journal_entry, run_auxiliary_posting, to_amount)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def compute_vat(sub_total, rate):
    """VAT rounded half-up to the cent; rate in percent."""
    return (to_amount(sub_total) * to_amount(rate) / Decimal("100")).quantize(
        CENT, rounding=ROUND_HALF_UP)


def derive_status(invoice, today=None):
    """
    cancelled  explicitly cancelled
    paid       fully settled by cash and/or prepayment
    overdue    due date passed
    partial    something settled
    unpaid     otherwise
    """
    if invoice.status == "cancelled":
        return "cancelled"
    today = today or timezone.localdate()
    settled = invoice.paid_amount + invoice.prepayment_applied
    if settled >= invoice.total_amount:
        return "paid"
    if invoice.due_date and invoice.due_date < today:
        return "overdue"
    if settled > 0:
        return "partial"
    return "unpaid"


def refresh_invoice_status(invoice, today=None, save=True):
    status = derive_status(invoice, today=today)
    if status != invoice.status:
        invoice.status = status
        if save:
            invoice.save(update_fields=["status", "updated_at"])
    return status


def lock_invoice(invoice_id):
    invoice = Invoice.objects.select_for_update().filter(pk=invoice_id).first()
    if invoice is None:
        raise UnknownInvoiceError(f"Invoice {invoice_id} not found.")
    return invoice


def lock_customer(customer_id):
    customer = Customer.objects.select_for_update().filter(pk=customer_id).first()
    if customer is None:
        raise UnknownCustomerError(f"Customer {customer_id} not found.")
    return customer


# ----------------------------
# Postings (reused by backfill)
# ----------------------------
def post_invoice_sale(invoice):
    """Dr customer receivable total / Cr sales sub_total / Cr VAT output."""
    receivable = ensure_customer_receivable_account(invoice.customer)
    lines = [EntryLine.debit(receivable, invoice.total_amount, f"Invoice {invoice.number}")]
    if invoice.sub_total:
        lines.append(EntryLine.credit(get_system_account("sales"), invoice.sub_total, "Sales"))
    if invoice.vat_amount:
        lines.append(EntryLine.credit(get_system_account("vat_output"), invoice.vat_amount, "VAT output"))
    entry = post_journal(JournalDraft(
        date=invoice.invoice_date,
        lines=lines,
        reference=invoice.number,
        description=f"Sales invoice {invoice.number} - {invoice.customer.name}",
        prefix="INV",
        auto_generated=True,
        source_type="invoice",
        source_id=invoice.pk,
    ))
    invoice.journal_entry = entry
    invoice.save(update_fields=["journal_entry", "updated_at"])
    return entry


def post_invoice_payment(payment):
    """Dr cash / Cr customer receivable."""
    invoice = payment.invoice
    receivable = ensure_customer_receivable_account(invoice.customer)
    entry = post_journal(JournalDraft(
        date=payment.payment_date,
        lines=[
            EntryLine.debit(get_system_account("cash"), payment.amount, "Cash received"),
            EntryLine.credit(receivable, payment.amount, f"Payment on {invoice.number}"),
        ],
        reference=payment.reference or invoice.number,
        description=f"Payment received for {invoice.number} - {invoice.customer.name}",
        prefix="PAY",
        auto_generated=True,
        source_type="invoice_payment",
        source_id=payment.pk,
    ))
    payment.journal_entry = entry
    payment.save(update_fields=["journal_entry"])
    return entry


def post_invoice_cancellation(invoice, date=None):
    """Reverse the sales entry of a cancelled invoice (REV), dated today by default."""
    entry = reverse_journal_entry(
        invoice.journal_entry,
        date=date or timezone.localdate(),
        description=f"Cancellation of invoice {invoice.number}",
    )
    invoice.reversal_entry = entry
    invoice.save(update_fields=["reversal_entry", "updated_at"])
    return entry


# ----------------------------
# Invoice workflows
# ----------------------------
def create_invoice(customer_id, sub_total, invoice_date, due_date=None,
                   vat_rate=None, notes=""):
    sub_total = to_amount(sub_total)
    if sub_total <= 0:
        raise InvalidAmountError("Invoice sub-total must be greater than zero.")
    if vat_rate is None:
        vat_rate = ledger_setting("DEFAULT_VAT_RATE")
    vat_amount = compute_vat(sub_total, vat_rate)

    with transaction.atomic():
        # Lock the customer so concurrent invoices add up on outstanding_balance
        customer = lock_customer(customer_id)

        def write(number):
            return Invoice.objects.create(
                number=number,
                customer=customer,
                invoice_date=invoice_date,
                due_date=due_date,
                sub_total=sub_total,
                vat_amount=vat_amount,
                total_amount=sub_total + vat_amount,
                notes=notes,
            )

        invoice = create_numbered("invoice", "INV", invoice_date.year, write)
        # due_date may already be in the past for back-dated invoices
        refresh_invoice_status(invoice)

        customer.outstanding_balance += invoice.total_amount
        customer.save(update_fields=["outstanding_balance", "updated_at"])

        # Dr receivable / Cr sales + VAT output
        run_auxiliary_posting(lambda: post_invoice_sale(invoice), f"invoice {invoice.number}")

    logger.info("Issued %s to customer %s for %s", invoice.number, customer.pk, invoice.total_amount)
    return invoice


def record_invoice_payment(invoice_id, amount, payment_date=None, method="",
                           reference=""):
    amount = to_amount(amount)
    payment_date = payment_date or timezone.localdate()

    with transaction.atomic():
        invoice = lock_invoice(invoice_id)
        if invoice.status == "cancelled" or invoice.remaining_amount <= 0:
            raise InvoiceAlreadySettledError(
                f"Invoice {invoice.number} is {invoice.status}; nothing to pay.")
        if amount <= 0:
            raise InvalidAmountError("Payment amount must be greater than zero.")
        if amount > invoice.remaining_amount:
            raise InvoiceAlreadySettledError(
                f"Payment {amount} exceeds the {invoice.remaining_amount} left on {invoice.number}.")

        # append-only; corrections go through a new record
        payment = InvoicePayment.objects.create(
            invoice=invoice,
            amount=amount,
            payment_date=payment_date,
            method=method,
            reference=reference,
        )
        invoice.paid_amount += amount
        invoice.status = derive_status(invoice)
        invoice.save(update_fields=["paid_amount", "status", "updated_at"])

        customer = lock_customer(invoice.customer_id)
        customer.outstanding_balance -= amount
        customer.save(update_fields=["outstanding_balance", "updated_at"])

        run_auxiliary_posting(lambda: post_invoice_payment(payment), f"payment on {invoice.number}")

    return payment


def cancel_invoice(invoice_id):
    with transaction.atomic():
        invoice = lock_invoice(invoice_id)
        if invoice.status == "cancelled":
            raise InvoiceAlreadySettledError(f"Invoice {invoice.number} is already cancelled.")
        if invoice.paid_amount > 0 or invoice.prepayment_applied > 0:
            raise InvoiceHasPaymentsError(
                f"Invoice {invoice.number} has payments or prepayments applied.")

        # the sale stays on the books until the REV entry below lands
        invoice.status = "cancelled"
        invoice.save(update_fields=["status", "updated_at"])

        customer = lock_customer(invoice.customer_id)
        customer.outstanding_balance -= invoice.total_amount
        customer.save(update_fields=["outstanding_balance", "updated_at"])

        if invoice.journal_entry_id:
            run_auxiliary_posting(
                lambda: post_invoice_cancellation(invoice),
                f"cancellation of {invoice.number}",
            )

    logger.info("Cancelled %s", invoice.number)
    return invoice
