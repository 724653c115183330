from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from ..exceptions import UnbalancedJournalError
from .accounts import get_system_account
from .posting import EntryLine, JournalDraft, post_journal, run_auxiliary_posting

ZERO = Decimal("0.00")

# PayrollTotals field → system account it is owed to
PAYROLL_CREDITS = (
    ("net_pay", "salaries_payable", "Net pay"),
    ("paye", "paye_payable", "PAYE"),
    ("pension", "pension_payable", "Pension"),
    ("nhis", "nhis_payable", "NHIS"),
    ("nhf", "nhf_payable", "NHF"),
)


@dataclass(frozen=True)
class PayrollTotals:
    """Totals of one payroll run; statutory arithmetic happens upstream."""

    gross_pay: Decimal
    net_pay: Decimal
    paye: Decimal = ZERO
    pension: Decimal = ZERO
    nhis: Decimal = ZERO
    nhf: Decimal = ZERO

    @property
    def deductions(self):
        return self.paye + self.pension + self.nhis + self.nhf


def post_payroll(run_number, payment_month, totals, posted_by=None):
    """
    Dr salary expense gross / Cr salaries payable net and each deduction.
    ``payment_month`` is the date the entry is dated on.
    """
    if totals.gross_pay != totals.net_pay + totals.deductions:
        raise UnbalancedJournalError(
            f"Payroll {run_number}: gross {totals.gross_pay} != net "
            f"{totals.net_pay} + deductions {totals.deductions}")

    def post():
        label = f"Payroll {run_number}"
        # Debit expense (single line)
        lines = [EntryLine.debit(get_system_account("salary_expense"), totals.gross_pay, label)]
        # Credit net pay and each deduction; zero lines are left out
        for attr, key, caption in PAYROLL_CREDITS:
            amount = getattr(totals, attr)
            if amount:
                lines.append(EntryLine.credit(get_system_account(key), amount, caption))
        return post_journal(JournalDraft(
            date=payment_month,
            lines=lines,
            reference=run_number,
            description=f"{label} for {payment_month:%B %Y}",
            prefix="SAL",
            posted_by=posted_by,
            auto_generated=True,
            source_type="payroll",
        ))

    with transaction.atomic():
        return run_auxiliary_posting(post, f"payroll {run_number}")
