from .accounts import (ensure_customer_prepayment_account,
                       ensure_customer_receivable_account, get_system_account,
                       validate_system_accounts)
from .backfill import backfill_missing_postings
from .balances import (balance_for_fiscal_year, recompute_all_balances,
                       recompute_balance)
from .credit import CreditEvaluation, evaluate_credit
from .fiscal_years import (close_fiscal_year, create_fiscal_year,
                           current_fiscal_year, edit_fiscal_year,
                           fiscal_year_for_date, set_current_fiscal_year,
                           set_opening_balances)
from .invoicing import (cancel_invoice, create_invoice, record_invoice_payment,
                        refresh_invoice_status)
from .payroll import PayrollTotals, post_payroll
from .posting import (EntryLine, JournalDraft, post_journal,
                      post_journal_entry, reverse_journal_entry)
from .prepayments import (apply_prepayment, create_prepayment,
                          customer_wallet, reconcile_prepayments,
                          reverse_prepayment_application)

__all__ = [
    "CreditEvaluation",
    "EntryLine",
    "JournalDraft",
    "PayrollTotals",
    "apply_prepayment",
    "backfill_missing_postings",
    "balance_for_fiscal_year",
    "cancel_invoice",
    "close_fiscal_year",
    "create_fiscal_year",
    "create_invoice",
    "create_prepayment",
    "current_fiscal_year",
    "customer_wallet",
    "edit_fiscal_year",
    "ensure_customer_prepayment_account",
    "ensure_customer_receivable_account",
    "evaluate_credit",
    "fiscal_year_for_date",
    "get_system_account",
    "post_journal",
    "post_journal_entry",
    "post_payroll",
    "recompute_all_balances",
    "recompute_balance",
    "reconcile_prepayments",
    "record_invoice_payment",
    "refresh_invoice_status",
    "reverse_journal_entry",
    "reverse_prepayment_application",
    "set_current_fiscal_year",
    "set_opening_balances",
    "validate_system_accounts",
]
