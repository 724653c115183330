import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from ..exceptions import (AlreadyReversedError, CustomerMismatchError,
                          InsufficientPrepaymentBalanceError,
                          InvalidAmountError, InvoiceAlreadySettledError,
                          UnknownCustomerError, UnknownPrepaymentError)
from ..models import Customer, CustomerPrepayment, PrepaymentApplication
from .accounts import (ensure_customer_prepayment_account,
                       ensure_customer_receivable_account, get_system_account)
from .invoicing import derive_status, lock_customer, lock_invoice
from .numbering import create_numbered
from .posting import (EntryLine, JournalDraft, post_journal,
                      run_auxiliary_posting, to_amount)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _locked_prepayment(prepayment_id):
    prepayment = (
        CustomerPrepayment.objects.select_for_update().filter(pk=prepayment_id).first()
    )
    if prepayment is None:
        raise UnknownPrepaymentError(f"Prepayment {prepayment_id} not found.")
    # never trust the cached used_amount for a balance decision
    _sync_used_amount(prepayment, _applied_total(prepayment))
    return prepayment


def _applied_total(prepayment):
    total = prepayment.applications.aggregate(total=Sum("applied_amount"))["total"]
    return total or ZERO


def _sync_used_amount(prepayment, used, report_drift=True):
    """
    Store ``used`` (the sum of the applications) on the prepayment.

    Returns True when the stored row changed. An overdrawn wallet cannot be
    stored as is (prepay_used_within_amount), so it is clamped to the
    prepayment amount and logged for manual correction.
    """
    if used > prepayment.amount:
        logger.error(
            "Prepayment %s is overdrawn: applications %s exceed amount %s",
            prepayment.number, used, prepayment.amount,
        )
        used = prepayment.amount
    elif report_drift and used != prepayment.used_amount:
        logger.warning(
            "Prepayment %s used_amount drifted: stored %s, applications %s",
            prepayment.number, prepayment.used_amount, used,
        )

    if used == prepayment.used_amount and prepayment.status == prepayment.derived_status():
        return False
    prepayment.used_amount = used
    prepayment.status = prepayment.derived_status()
    prepayment.save(update_fields=["used_amount", "status", "updated_at"])
    return True


# ----------------------------
# Postings (reused by backfill)
# ----------------------------
def post_prepayment_receipt(prepayment, posted_by=None):
    """Dr cash / Cr the customer's prepayment liability."""
    liability = ensure_customer_prepayment_account(prepayment.customer)
    entry = post_journal(JournalDraft(
        date=prepayment.date,
        lines=[
            EntryLine.debit(get_system_account("cash"), prepayment.amount, "Cash received"),
            EntryLine.credit(liability, prepayment.amount, f"Advance {prepayment.number}"),
        ],
        reference=prepayment.number,
        description=f"Customer prepayment {prepayment.number} - {prepayment.customer.name}",
        prefix="ADV",
        posted_by=posted_by,
        auto_generated=True,
        source_type="customer_prepayment",
        source_id=prepayment.pk,
    ))
    prepayment.journal_entry = entry
    prepayment.save(update_fields=["journal_entry", "updated_at"])
    return entry


def post_prepayment_application(application):
    """
    Application:  Dr prepayment liability / Cr customer receivable  (APP)
    Reversal:     the mirror image                                   (APR)
    """
    prepayment = application.prepayment
    customer = prepayment.customer
    liability = ensure_customer_prepayment_account(customer)
    receivable = ensure_customer_receivable_account(customer)
    amount = abs(application.applied_amount)
    invoice_number = application.invoice.number

    if application.is_reversal:
        lines = [
            EntryLine.debit(receivable, amount, f"Reinstate {invoice_number}"),
            EntryLine.credit(liability, amount, f"Return to {prepayment.number}"),
        ]
        prefix, what = "APR", "Reversal of prepayment application"
    else:
        lines = [
            EntryLine.debit(liability, amount, f"Use of {prepayment.number}"),
            EntryLine.credit(receivable, amount, f"Settle {invoice_number}"),
        ]
        prefix, what = "APP", "Prepayment applied"

    entry = post_journal(JournalDraft(
        date=application.applied_date,
        lines=lines,
        reference=prepayment.number,
        description=f"{what}: {prepayment.number} → {invoice_number}",
        prefix=prefix,
        auto_generated=True,
        source_type="prepayment_application",
        source_id=application.pk,
    ))
    application.journal_entry = entry
    application.save(update_fields=["journal_entry"])
    return entry


# ----------------------------
# Wallet workflows
# ----------------------------
def create_prepayment(customer_id, amount, date, method="", reference="",
                      notes="", posted_by=None):
    amount = to_amount(amount)
    if amount <= 0:
        raise InvalidAmountError("Prepayment amount must be greater than zero.")

    with transaction.atomic():
        customer = Customer.objects.filter(pk=customer_id).first()
        if customer is None:
            raise UnknownCustomerError(f"Customer {customer_id} not found.")

        # numbered ADV/{year}/NNNN, like the entry that posts it
        def write(number):
            return CustomerPrepayment.objects.create(
                number=number,
                customer=customer,
                date=date,
                amount=amount,
                payment_method=method,
                reference=reference,
                notes=notes,
            )

        prepayment = create_numbered("prepayment", "ADV", date.year, write)

        run_auxiliary_posting(
            lambda: post_prepayment_receipt(prepayment, posted_by=posted_by),
            f"prepayment {prepayment.number}",
        )

    logger.info("Recorded %s for customer %s: %s", prepayment.number, customer.pk, amount)
    return prepayment


def apply_prepayment(prepayment_id, invoice_id, amount, applied_date=None,
                     description=""):
    amount = to_amount(amount)
    applied_date = applied_date or timezone.localdate()

    with transaction.atomic():
        # Lock wallet then invoice, always in this order
        prepayment = _locked_prepayment(prepayment_id)
        invoice = lock_invoice(invoice_id)

        if amount <= 0:
            raise InvalidAmountError("Applied amount must be greater than zero.")
        if prepayment.status == "exhausted" or amount > prepayment.remaining_amount:
            raise InsufficientPrepaymentBalanceError(
                f"{prepayment.number} has {prepayment.remaining_amount} available, "
                f"{amount} requested.")
        if prepayment.customer_id != invoice.customer_id:
            raise CustomerMismatchError(
                f"{prepayment.number} and {invoice.number} belong to different customers.")
        if invoice.status == "cancelled" or invoice.remaining_amount <= 0:
            raise InvoiceAlreadySettledError(
                f"Invoice {invoice.number} has nothing left to settle.")
        if amount > invoice.remaining_amount:
            raise InvoiceAlreadySettledError(
                f"{amount} exceeds the {invoice.remaining_amount} left on {invoice.number}.")

        # Record the application, then move the money
        application = PrepaymentApplication.objects.create(
            prepayment=prepayment,
            invoice=invoice,
            applied_amount=amount,
            applied_date=applied_date,
            description=description,
        )
        _apply_effects(prepayment, invoice, amount)

        run_auxiliary_posting(
            lambda: post_prepayment_application(application),
            f"application of {prepayment.number} to {invoice.number}",
        )

    return application


def reverse_prepayment_application(application_id, reversal_date=None,
                                   description=""):
    """
    Undo an application with a compensating negative row; the original
    row is never edited or deleted.
    """
    with transaction.atomic():
        original = (
            PrepaymentApplication.objects.select_for_update()
            .filter(pk=application_id).first()
        )
        if original is None:
            raise UnknownPrepaymentError(f"Prepayment application {application_id} not found.")
        if original.is_reversal:
            raise AlreadyReversedError("A reversal cannot itself be reversed.")
        if PrepaymentApplication.objects.filter(reverses=original).exists():
            raise AlreadyReversedError(f"Application {original.pk} is already reversed.")

        # same lock order as apply_prepayment
        prepayment = _locked_prepayment(original.prepayment_id)
        invoice = lock_invoice(original.invoice_id)

        reversal = PrepaymentApplication.objects.create(
            prepayment=prepayment,
            invoice=invoice,
            applied_amount=-original.applied_amount,
            applied_date=reversal_date or timezone.localdate(),
            description=description or f"Reversal of application {original.pk}",
            reverses=original,
        )
        _apply_effects(prepayment, invoice, reversal.applied_amount)

        run_auxiliary_posting(
            lambda: post_prepayment_application(reversal),
            f"reversal of application {original.pk}",
        )

    logger.info("Reversed prepayment application %s", original.pk)
    return reversal


def _apply_effects(prepayment, invoice, amount):
    """Move ``amount`` (signed) from the wallet onto the invoice."""
    # the new application row is already written; re-sum rather than add
    _sync_used_amount(prepayment, _applied_total(prepayment), report_drift=False)

    invoice.prepayment_applied += amount
    invoice.status = derive_status(invoice)
    invoice.save(update_fields=["prepayment_applied", "status", "updated_at"])

    customer = lock_customer(invoice.customer_id)
    customer.outstanding_balance -= amount
    customer.save(update_fields=["outstanding_balance", "updated_at"])


# ----------------------------
# Reconciler
# ----------------------------
@transaction.atomic
def reconcile_prepayments(customer_id=None):
    """
    Recompute used_amount from the applications and re-derive status.
    Idempotent. Overdrawn prepayments are clamped and logged rather than
    aborting the pass. Returns the number of prepayments corrected.
    """
    prepayments = CustomerPrepayment.objects.select_for_update()
    if customer_id is not None:
        prepayments = prepayments.for_customer(customer_id)
    prepayments = list(prepayments)

    # FOR UPDATE cannot be combined with GROUP BY, so sum separately
    applied = dict(
        PrepaymentApplication.objects.filter(prepayment__in=prepayments)
        .values("prepayment_id")
        .annotate(total=Sum("applied_amount"))
        .values_list("prepayment_id", "total")
    )

    corrected = 0
    for prepayment in prepayments:
        if _sync_used_amount(prepayment, applied.get(prepayment.pk) or ZERO):
            corrected += 1
    return corrected


def customer_wallet(customer_id):
    """Reconcile, then return (active prepayments, available balance)."""
    if not Customer.objects.filter(pk=customer_id).exists():
        raise UnknownCustomerError(f"Customer {customer_id} not found.")
    reconcile_prepayments(customer_id)
    active = CustomerPrepayment.objects.for_customer(customer_id).active()
    return list(active), active.available_balance()
