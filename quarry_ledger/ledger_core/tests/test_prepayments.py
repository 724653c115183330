from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import (AlreadyReversedError, CustomerMismatchError,
                          InsufficientPrepaymentBalanceError,
                          InvalidAmountError, InvoiceAlreadySettledError,
                          UnknownCustomerError, UnknownInvoiceError,
                          UnknownPrepaymentError)
from ..models import Account, CustomerPrepayment, PrepaymentApplication
from ..services import (apply_prepayment, cancel_invoice, create_invoice,
                        create_prepayment, customer_wallet,
                        reconcile_prepayments, reverse_prepayment_application)
from .base import LedgerFixtureMixin, d


class PrepaymentTestBase(LedgerFixtureMixin, TestCase):

    def setUp(self):
        self.customer = self.make_customer(id=7)

    def invoice(self, amount, customer=None):
        # zero VAT keeps the arithmetic readable
        return create_invoice(
            (customer or self.customer).pk, Decimal(amount), d(2025, 1, 15), vat_rate=0
        )

    def prepayment(self, amount, customer=None):
        return create_prepayment(
            (customer or self.customer).pk, Decimal(amount), d(2025, 1, 10), method="transfer"
        )


""" Recording money received in advance """
class CreatePrepaymentTests(PrepaymentTestBase):

    def test_prepayment_is_numbered_and_starts_active(self):
        prepayment = self.prepayment("50000")

        self.assertEqual(prepayment.number, "ADV/2025/0001")
        self.assertEqual(prepayment.status, "active")
        self.assertEqual(prepayment.used_amount, Decimal("0.00"))
        self.assertEqual(self.prepayment("100").number, "ADV/2025/0002")

    def test_creates_per_customer_liability_account(self):
        self.prepayment("50000")

        account = Account.objects.get(code="2103-000007")
        self.assertEqual(account.name, "Customer Prepayments - Dangote Ready-Mix")
        self.assertEqual(account.category, "liability")
        self.assertEqual(account.parent.code, "2103")
        self.assertTrue(account.is_active)

    def test_posts_cash_against_customer_liability(self):
        prepayment = self.prepayment("50000")

        entry = prepayment.journal_entry
        self.assertIsNotNone(entry)
        self.assertEqual(entry.number, "ADV/2025/0001")
        self.assertEqual(entry.lines.get(account__code="1001").debit, Decimal("50000.00"))
        self.assertEqual(entry.lines.get(account__code="2103-000007").credit, Decimal("50000.00"))
        self.assertEqual(self.balance("1001"), Decimal("50000.00"))
        self.assertEqual(self.balance("2103-000007"), Decimal("50000.00"))

    def test_existing_account_only_gets_name_and_flag_refreshed(self):
        self.prepayment("50000")
        self.customer.name = "Dangote Concrete"
        self.customer.save()

        self.prepayment("1000")

        account = Account.objects.get(code="2103-000007")
        self.assertEqual(account.name, "Customer Prepayments - Dangote Concrete")
        self.assertEqual(account.current_balance, Decimal("51000.00"))
        self.assertEqual(Account.objects.filter(code__startswith="2103-").count(), 1)

    def test_deactivating_customer_deactivates_sub_account(self):
        self.prepayment("50000")
        self.customer.status = "blacklisted"
        self.customer.save()

        self.assertFalse(Account.objects.get(code="2103-000007").is_active)

    def test_non_positive_amount_is_rejected(self):
        with self.assertRaises(InvalidAmountError):
            self.prepayment("0")
        self.assertFalse(CustomerPrepayment.objects.exists())

    def test_unknown_customer_is_rejected(self):
        with self.assertRaises(UnknownCustomerError):
            create_prepayment(404, Decimal("10"), d(2025, 1, 10))


""" Applying wallet money to invoices """
class ApplyPrepaymentTests(PrepaymentTestBase):

    def test_apply_settles_invoice_and_moves_ledger(self):
        prepayment = self.prepayment("50000")
        invoice = self.invoice("40000")

        application = apply_prepayment(prepayment.pk, invoice.pk, Decimal("40000"), d(2025, 1, 20))

        prepayment.refresh_from_db()
        invoice.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(prepayment.used_amount, Decimal("40000.00"))
        self.assertEqual(prepayment.status, "active")
        self.assertEqual(invoice.prepayment_applied, Decimal("40000.00"))
        self.assertEqual(invoice.status, "paid")
        self.assertEqual(self.customer.outstanding_balance, Decimal("0.00"))

        # Dr prepayment liability / Cr receivable
        self.assertEqual(application.journal_entry.number, "APP/2025/0001")
        self.assertEqual(self.balance("2103-000007"), Decimal("10000.00"))
        self.assertEqual(self.balance("1101-000007"), Decimal("0.00"))

    def test_using_everything_exhausts_the_prepayment(self):
        prepayment = self.prepayment("30000")
        invoice = self.invoice("40000")

        apply_prepayment(prepayment.pk, invoice.pk, Decimal("30000"))

        prepayment.refresh_from_db()
        invoice.refresh_from_db()
        self.assertEqual(prepayment.status, "exhausted")
        self.assertEqual(invoice.status, "partial")
        self.assertEqual(invoice.remaining_amount, Decimal("10000.00"))

    def test_applying_more_than_available_is_rejected(self):
        prepayment = self.prepayment("30000")
        invoice = self.invoice("40000")

        with self.assertRaises(InsufficientPrepaymentBalanceError):
            apply_prepayment(prepayment.pk, invoice.pk, Decimal("40000"))

        prepayment.refresh_from_db()
        self.assertEqual(prepayment.used_amount, Decimal("0.00"))
        self.assertFalse(PrepaymentApplication.objects.exists())

        # the wallet balance is checked before anything about the invoice
        cancelled = self.invoice("50000")
        cancel_invoice(cancelled.pk)
        with self.assertRaises(InsufficientPrepaymentBalanceError):
            apply_prepayment(prepayment.pk, cancelled.pk, Decimal("40000"))

        other = self.make_customer("Julius Berger")
        theirs = self.invoice("50000", customer=other)
        with self.assertRaises(InsufficientPrepaymentBalanceError):
            apply_prepayment(prepayment.pk, theirs.pk, Decimal("40000"))

    def test_stale_used_amount_cannot_overspend(self):
        prepayment = self.prepayment("30000")
        apply_prepayment(prepayment.pk, self.invoice("30000").pk, Decimal("30000"))
        CustomerPrepayment.objects.filter(pk=prepayment.pk).update(
            used_amount=Decimal("0.00"), status="active"
        )

        with self.assertLogs("ledger_core", level="WARNING"):
            with self.assertRaises(InsufficientPrepaymentBalanceError):
                apply_prepayment(prepayment.pk, self.invoice("30000").pk, Decimal("30000"))

        self.assertEqual(PrepaymentApplication.objects.count(), 1)

    def test_non_finite_amounts_are_rejected(self):
        prepayment = self.prepayment("30000")
        invoice = self.invoice("10000")

        for amount in ("NaN", "Infinity", Decimal("-Infinity")):
            with self.assertRaises(InvalidAmountError):
                apply_prepayment(prepayment.pk, invoice.pk, amount)
            with self.assertRaises(InvalidAmountError):
                create_prepayment(self.customer.pk, amount, d(2025, 1, 10))

    def test_exhausted_prepayment_is_rejected(self):
        prepayment = self.prepayment("10000")
        apply_prepayment(prepayment.pk, self.invoice("10000").pk, Decimal("10000"))

        with self.assertRaises(InsufficientPrepaymentBalanceError):
            apply_prepayment(prepayment.pk, self.invoice("5000").pk, Decimal("1"))

    def test_applying_more_than_invoice_remaining_is_rejected(self):
        prepayment = self.prepayment("50000")
        invoice = self.invoice("10000")

        with self.assertRaises(InvoiceAlreadySettledError):
            apply_prepayment(prepayment.pk, invoice.pk, Decimal("20000"))

    def test_cancelled_invoice_is_rejected(self):
        prepayment = self.prepayment("50000")
        invoice = self.invoice("10000")
        cancel_invoice(invoice.pk)

        with self.assertRaises(InvoiceAlreadySettledError):
            apply_prepayment(prepayment.pk, invoice.pk, Decimal("100"))

    def test_other_customers_invoice_is_rejected(self):
        prepayment = self.prepayment("50000")
        other = self.make_customer("Julius Berger")
        invoice = self.invoice("10000", customer=other)

        with self.assertRaises(CustomerMismatchError) as ctx:
            apply_prepayment(prepayment.pk, invoice.pk, Decimal("100"))
        self.assertIsInstance(ctx.exception, ValidationError)

    def test_invalid_amount_and_unknown_ids(self):
        prepayment = self.prepayment("50000")
        invoice = self.invoice("10000")

        with self.assertRaises(InvalidAmountError):
            apply_prepayment(prepayment.pk, invoice.pk, Decimal("0"))
        with self.assertRaises(UnknownPrepaymentError):
            apply_prepayment(999, invoice.pk, Decimal("1"))
        with self.assertRaises(UnknownInvoiceError):
            apply_prepayment(prepayment.pk, 999, Decimal("1"))


""" Undoing an application without editing history """
class ReverseApplicationTests(PrepaymentTestBase):

    def setUp(self):
        super().setUp()
        self.prepayment_obj = self.prepayment("30000")
        self.invoice_obj = self.invoice("40000")
        self.application = apply_prepayment(
            self.prepayment_obj.pk, self.invoice_obj.pk, Decimal("30000"), d(2025, 1, 20)
        )

    def test_reversal_is_a_compensating_record(self):
        reversal = reverse_prepayment_application(self.application.pk, d(2025, 1, 25))

        self.assertEqual(reversal.applied_amount, Decimal("-30000.00"))
        self.assertEqual(reversal.reverses_id, self.application.pk)
        # the original row is untouched
        self.application.refresh_from_db()
        self.assertEqual(self.application.applied_amount, Decimal("30000.00"))
        self.assertEqual(PrepaymentApplication.objects.count(), 2)

    def test_reversal_restores_wallet_invoice_and_customer(self):
        reverse_prepayment_application(self.application.pk, d(2025, 1, 25))

        self.prepayment_obj.refresh_from_db()
        self.invoice_obj.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(self.prepayment_obj.used_amount, Decimal("0.00"))
        self.assertEqual(self.prepayment_obj.status, "active")
        self.assertEqual(self.invoice_obj.prepayment_applied, Decimal("0.00"))
        self.assertEqual(self.invoice_obj.status, "unpaid")
        self.assertEqual(self.customer.outstanding_balance, Decimal("40000.00"))

    def test_reversal_posts_inverse_entry(self):
        reversal = reverse_prepayment_application(self.application.pk, d(2025, 1, 25))

        self.assertEqual(reversal.journal_entry.number, "APR/2025/0001")
        self.assertEqual(self.balance("2103-000007"), Decimal("30000.00"))
        self.assertEqual(self.balance("1101-000007"), Decimal("40000.00"))

    def test_cannot_reverse_twice_or_reverse_a_reversal(self):
        reversal = reverse_prepayment_application(self.application.pk)

        with self.assertRaises(AlreadyReversedError):
            reverse_prepayment_application(self.application.pk)
        with self.assertRaises(AlreadyReversedError):
            reverse_prepayment_application(reversal.pk)

    def test_reversal_resyncs_a_stale_wallet_first(self):
        CustomerPrepayment.objects.filter(pk=self.prepayment_obj.pk).update(
            used_amount=Decimal("10000.00"), status="active"
        )

        reverse_prepayment_application(self.application.pk)

        self.prepayment_obj.refresh_from_db()
        self.assertEqual(self.prepayment_obj.used_amount, Decimal("0.00"))
        self.assertEqual(self.prepayment_obj.status, "active")

    def test_applications_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.application.delete()


""" Reconciler and wallet read path """
class ReconcileTests(PrepaymentTestBase):

    def test_reconcile_repairs_drift_and_is_idempotent(self):
        prepayment = self.prepayment("30000")
        apply_prepayment(prepayment.pk, self.invoice("40000").pk, Decimal("30000"))
        CustomerPrepayment.objects.filter(pk=prepayment.pk).update(
            used_amount=Decimal("0.00"), status="active"
        )

        self.assertEqual(reconcile_prepayments(), 1)
        prepayment.refresh_from_db()
        self.assertEqual(prepayment.used_amount, Decimal("30000.00"))
        self.assertEqual(prepayment.status, "exhausted")

        self.assertEqual(reconcile_prepayments(), 0)

    def test_overdrawn_prepayment_is_clamped_not_fatal(self):
        prepayment = self.prepayment("30000")
        apply_prepayment(prepayment.pk, self.invoice("30000").pk, Decimal("30000"))
        # a row written behind the service's back pushes the wallet past its amount
        PrepaymentApplication.objects.create(
            prepayment=prepayment,
            invoice=self.invoice("10000"),
            applied_amount=Decimal("10000.00"),
            applied_date=d(2025, 1, 20),
        )
        healthy = self.prepayment("5000")
        CustomerPrepayment.objects.filter(pk=healthy.pk).update(status="exhausted")

        with self.assertLogs("ledger_core", level="ERROR") as logs:
            reconcile_prepayments()

        self.assertIn(prepayment.number, "\n".join(logs.output))
        prepayment.refresh_from_db()
        healthy.refresh_from_db()
        self.assertEqual(prepayment.used_amount, Decimal("30000.00"))
        self.assertEqual(prepayment.status, "exhausted")
        self.assertEqual(healthy.status, "active")

        with self.assertLogs("ledger_core", level="ERROR"):
            prepayments, balance = customer_wallet(self.customer.pk)
        self.assertEqual(prepayments, [healthy])
        self.assertEqual(balance, Decimal("5000.00"))

    def test_reconcile_can_be_limited_to_one_customer(self):
        mine = self.prepayment("1000")
        other = self.make_customer("Julius Berger")
        theirs = self.prepayment("1000", customer=other)
        CustomerPrepayment.objects.filter(pk__in=[mine.pk, theirs.pk]).update(status="exhausted")

        self.assertEqual(reconcile_prepayments(self.customer.pk), 1)
        theirs.refresh_from_db()
        self.assertEqual(theirs.status, "exhausted")

    def test_wallet_lists_active_prepayments_and_balance(self):
        first = self.prepayment("30000")
        self.prepayment("5000")
        apply_prepayment(first.pk, self.invoice("10000").pk, Decimal("10000"))

        prepayments, balance = customer_wallet(self.customer.pk)

        self.assertEqual(len(prepayments), 2)
        self.assertEqual(balance, Decimal("25000.00"))

    def test_wallet_of_unknown_customer(self):
        with self.assertRaises(UnknownCustomerError):
            customer_wallet(404)
