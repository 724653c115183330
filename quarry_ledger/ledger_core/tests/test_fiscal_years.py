from decimal import Decimal

from django.db import IntegrityError, transaction
from django.test import TestCase

from ..exceptions import (AlreadyClosedError, CannotActivateClosedYearError,
                          FiscalYearNotFoundError, ImmutableClosedYearError,
                          InvalidRangeError, OverlappingRangeError)
from ..models import AccountFiscalYearBalance, FiscalYear
from ..services import (close_fiscal_year, create_fiscal_year,
                        current_fiscal_year, edit_fiscal_year,
                        fiscal_year_for_date, set_current_fiscal_year,
                        set_opening_balances)
from .base import LedgerFixtureMixin, d


class FiscalYearManagerTests(LedgerFixtureMixin, TestCase):

    def setUp(self):
        self.fy2025 = create_fiscal_year("FY2025", d(2025, 1, 1), d(2025, 12, 31))

    def test_first_year_becomes_current(self):
        fy2026 = create_fiscal_year("FY2026", d(2026, 1, 1), d(2026, 12, 31))

        self.assertTrue(self.fy2025.is_current)
        self.assertFalse(fy2026.is_current)
        self.assertEqual(current_fiscal_year(), self.fy2025)

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(InvalidRangeError):
            create_fiscal_year("BAD", d(2026, 12, 31), d(2026, 1, 1))

    def test_overlap_is_inclusive(self):
        # shares 2025-12-31 with FY2025
        with self.assertRaises(OverlappingRangeError):
            create_fiscal_year("FY2026", d(2025, 12, 31), d(2026, 12, 30))
        # adjacent is fine
        create_fiscal_year("FY2026", d(2026, 1, 1), d(2026, 12, 31))

    def test_set_current_leaves_exactly_one_current_year(self):
        fy2026 = create_fiscal_year("FY2026", d(2026, 1, 1), d(2026, 12, 31))

        set_current_fiscal_year(fy2026.pk)

        self.assertEqual(list(FiscalYear.objects.filter(is_current=True)), [fy2026])

    def test_database_rejects_two_current_years(self):
        fy2026 = create_fiscal_year("FY2026", d(2026, 1, 1), d(2026, 12, 31))

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                FiscalYear.objects.filter(pk=fy2026.pk).update(is_current=True)

    def test_close_clears_current_and_blocks_activation(self):
        close_fiscal_year(self.fy2025.pk)
        self.fy2025.refresh_from_db()

        self.assertTrue(self.fy2025.is_closed)
        self.assertFalse(self.fy2025.is_current)
        self.assertIsNone(current_fiscal_year())
        with self.assertRaises(CannotActivateClosedYearError):
            set_current_fiscal_year(self.fy2025.pk)

    def test_closing_twice_is_a_conflict(self):
        close_fiscal_year(self.fy2025.pk)
        with self.assertRaises(AlreadyClosedError):
            close_fiscal_year(self.fy2025.pk)

    def test_edit_checks_range_excluding_itself(self):
        fy2026 = create_fiscal_year("FY2026", d(2026, 1, 1), d(2026, 12, 31))

        # shrinking itself overlaps only itself
        edited = edit_fiscal_year(self.fy2025.pk, d(2025, 1, 1), d(2025, 6, 30), code="H1-2025")
        self.assertEqual(edited.code, "H1-2025")

        with self.assertRaises(OverlappingRangeError):
            edit_fiscal_year(fy2026.pk, d(2025, 6, 1), d(2026, 12, 31))
        with self.assertRaises(InvalidRangeError):
            edit_fiscal_year(fy2026.pk, d(2026, 12, 31), d(2026, 1, 1))

    def test_closed_year_cannot_be_edited(self):
        close_fiscal_year(self.fy2025.pk)
        with self.assertRaises(ImmutableClosedYearError):
            edit_fiscal_year(self.fy2025.pk, d(2025, 1, 1), d(2025, 11, 30))

    def test_unknown_year(self):
        with self.assertRaises(FiscalYearNotFoundError):
            set_current_fiscal_year(999)
        with self.assertRaises(FiscalYearNotFoundError):
            close_fiscal_year(999)

    def test_fiscal_year_for_date(self):
        self.assertEqual(fiscal_year_for_date(d(2025, 7, 1)), self.fy2025)
        self.assertIsNone(fiscal_year_for_date(d(2024, 7, 1)))

    def test_opening_balances_are_upserted(self):
        cash = self.account("1001")
        equity = self.account("3001")

        self.assertEqual(
            set_opening_balances(self.fy2025.pk, {cash.pk: "1500.00", equity.pk: "1500.00"}),
            (2, 0),
        )
        self.assertEqual(set_opening_balances(self.fy2025.pk, {cash.pk: "1750.00"}), (0, 1))
        row = AccountFiscalYearBalance.objects.get(account=cash, fiscal_year=self.fy2025)
        self.assertEqual(row.opening_balance, Decimal("1750.00"))

    def test_opening_balances_of_closed_year_are_frozen(self):
        close_fiscal_year(self.fy2025.pk)
        with self.assertRaises(ImmutableClosedYearError):
            set_opening_balances(self.fy2025.pk, {self.account("1001").pk: "1.00"})
