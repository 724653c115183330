import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from ..models import Account, AccountFiscalYearBalance, JournalLine

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def recompute_balance(account_id):
    """
    Rebuild one account's current_balance from its full line history.

    asset, expense:              opening + debits - credits
    liability, equity, revenue:  opening + credits - debits

    Idempotent. Returns the new balance, or None if the account is gone.
    """
    account = Account.objects.filter(pk=account_id).first()
    if account is None:
        return None

    # Sum the full history, never an increment
    debit, credit = JournalLine.objects.for_account(account_id).totals()
    balance = account.opening_balance + account.signed_movement(debit, credit)

    # update() skips full_clean(): only the cached figure changes
    Account.objects.filter(pk=account_id).update(
        current_balance=balance, updated_at=timezone.now()
    )
    return balance


@transaction.atomic
def recompute_all_balances():
    """Refresh every account from one aggregate query. Returns the count."""
    totals = {
        row["account_id"]: (row["total_debit"], row["total_credit"])
        for row in JournalLine.objects.totals_by_account()
    }
    # Lock accounts so a concurrent posting waits for the sweep
    accounts = list(Account.objects.select_for_update())
    now = timezone.now()
    drifted = 0
    for account in accounts:
        debit, credit = totals.get(account.pk, (ZERO, ZERO))
        balance = account.opening_balance + account.signed_movement(debit, credit)
        if balance != account.current_balance:
            drifted += 1
        account.current_balance = balance
        account.updated_at = now
    Account.objects.bulk_update(accounts, ["current_balance", "updated_at"])
    if drifted:
        logger.warning("Corrected %d drifted account balance(s)", drifted)
    return len(accounts)


def balance_for_fiscal_year(account, fiscal_year):
    """
    Closing balance of ``account`` within ``fiscal_year``: the year's opening
    balance (falling back to the account's own opening balance) plus the
    signed movement dated inside the year.
    """
    opening = (
        AccountFiscalYearBalance.objects.filter(
            account=account, fiscal_year=fiscal_year
        )
        .values_list("opening_balance", flat=True)
        .first()
    )
    if opening is None:
        opening = account.opening_balance

    debit, credit = (
        JournalLine.objects.for_account(account.pk)
        .between(fiscal_year.start_date, fiscal_year.end_date)
        .totals()
    )
    return opening + account.signed_movement(debit, credit)
