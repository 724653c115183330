"""
Repair ledger gaps left by best-effort postings.

Every business record that should carry a journal entry but has none is
posted again, oldest first, each in its own savepoint. Payroll runs are
not persisted here, so they cannot be backfilled.
"""
import logging

from django.db import transaction

from ..models import (CustomerPrepayment, Invoice, InvoicePayment,
                      PrepaymentApplication)
from .invoicing import (post_invoice_cancellation, post_invoice_payment,
                        post_invoice_sale)
from .posting import POSTING_FAILURES
from .prepayments import post_prepayment_application, post_prepayment_receipt

logger = logging.getLogger(__name__)


def _gaps():
    # order matters: a receipt must exist before it is applied
    return (
        ("invoices", Invoice.objects.filter(journal_entry__isnull=True)
            .exclude(status="cancelled").select_related("customer"),
         post_invoice_sale),
        ("invoice_payments", InvoicePayment.objects.filter(journal_entry__isnull=True)
            .select_related("invoice__customer"),
         post_invoice_payment),
        # cancelled after the sale was posted, but the REV entry never landed
        ("invoice_cancellations", Invoice.objects.filter(
            status="cancelled", journal_entry__isnull=False, reversal_entry__isnull=True)
            .select_related("journal_entry"),
         post_invoice_cancellation),
        ("prepayments", CustomerPrepayment.objects.filter(journal_entry__isnull=True)
            .select_related("customer"),
         post_prepayment_receipt),
        ("prepayment_applications", PrepaymentApplication.objects.filter(journal_entry__isnull=True)
            .select_related("prepayment__customer", "invoice"),
         post_prepayment_application),
    )


def backfill_missing_postings():
    """
    Post every missing auxiliary entry. Returns
    {"invoices": n, ..., "failed": n}; failures are logged and left for
    the next run.
    """
    summary = {"failed": 0}
    for label, queryset, post in _gaps():
        summary[label] = 0
        for record in queryset:
            try:
                with transaction.atomic():
                    post(record)
            except POSTING_FAILURES:
                logger.exception("Backfill of %s %s failed", label, record.pk)
                summary["failed"] += 1
            else:
                summary[label] += 1
    if any(summary.values()):
        logger.info("Backfill finished: %s", summary)
    return summary
