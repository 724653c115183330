from decimal import Decimal

from django.test import TestCase

from ..models import Account, AccountFiscalYearBalance
from ..services import (EntryLine, balance_for_fiscal_year, create_fiscal_year,
                        post_journal_entry, recompute_all_balances,
                        recompute_balance)
from .base import LedgerFixtureMixin, d


class BalanceRecalculatorTests(LedgerFixtureMixin, TestCase):

    def post(self, debit_code, credit_code, amount, day=None):
        return post_journal_entry(
            [EntryLine.debit(debit_code, amount), EntryLine.credit(credit_code, amount)],
            day or d(2025, 4, 1),
        )

    def test_asset_balance_grows_with_debits(self):
        Account.objects.filter(code="1001").update(opening_balance=Decimal("500.00"))
        self.post("1001", "4001", "200.00")
        self.post("6002", "1001", "50.00")

        # opening + debits - credits
        self.assertEqual(recompute_balance(self.account("1001").pk), Decimal("650.00"))
        self.assertEqual(self.balance("6002"), Decimal("50.00"))

    def test_liability_balance_grows_with_credits(self):
        Account.objects.filter(code="2001").update(opening_balance=Decimal("100.00"))
        self.post("5003", "2001", "300.00")
        self.post("2001", "1001", "100.00")

        # opening + credits - debits
        self.assertEqual(recompute_balance(self.account("2001").pk), Decimal("300.00"))

    def test_recompute_is_idempotent_and_repairs_drift(self):
        self.post("1001", "4001", "120.00")
        cash = self.account("1001")
        Account.objects.filter(pk=cash.pk).update(current_balance=Decimal("999.99"))

        first = recompute_balance(cash.pk)
        second = recompute_balance(cash.pk)

        self.assertEqual(first, Decimal("120.00"))
        self.assertEqual(first, second)
        self.assertEqual(self.balance("1001"), Decimal("120.00"))

    def test_missing_account_is_a_no_op(self):
        self.assertIsNone(recompute_balance(987654))

    def test_recompute_all_refreshes_every_account(self):
        self.post("1001", "4001", "80.00")
        Account.objects.update(current_balance=Decimal("1.00"))

        count = recompute_all_balances()

        self.assertEqual(count, Account.objects.count())
        self.assertEqual(self.balance("1001"), Decimal("80.00"))
        self.assertEqual(self.balance("4001"), Decimal("80.00"))
        self.assertEqual(self.balance("3001"), Decimal("0.00"))

    def test_fiscal_year_balance_uses_year_opening_and_year_movement(self):
        year = create_fiscal_year("FY2025", d(2025, 1, 1), d(2025, 12, 31))
        cash = self.account("1001")
        AccountFiscalYearBalance.objects.create(
            account=cash, fiscal_year=year, opening_balance=Decimal("1000.00")
        )
        self.post("1001", "4001", "200.00", day=d(2025, 6, 1))
        # outside the year: ignored
        self.post("1001", "4001", "50.00", day=d(2026, 1, 2))

        self.assertEqual(balance_for_fiscal_year(cash, year), Decimal("1200.00"))

    def test_fiscal_year_balance_falls_back_to_account_opening(self):
        year = create_fiscal_year("FY2025", d(2025, 1, 1), d(2025, 12, 31))
        Account.objects.filter(code="4001").update(opening_balance=Decimal("10.00"))
        self.post("1001", "4001", "40.00", day=d(2025, 2, 1))

        self.assertEqual(balance_for_fiscal_year(self.account("4001"), year), Decimal("50.00"))
