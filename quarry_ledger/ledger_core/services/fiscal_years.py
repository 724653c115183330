import logging

from django.db import transaction

from ..exceptions import (AlreadyClosedError, CannotActivateClosedYearError,
                          FiscalYearNotFoundError, ImmutableClosedYearError,
                          InvalidRangeError, OverlappingRangeError,
                          UnknownAccountError)
from ..models import Account, AccountFiscalYearBalance, FiscalYear
from .posting import to_amount

logger = logging.getLogger(__name__)


def _locked_year(fiscal_year_id):
    year = FiscalYear.objects.select_for_update().filter(pk=fiscal_year_id).first()
    if year is None:
        raise FiscalYearNotFoundError(f"Fiscal year {fiscal_year_id} not found.")
    return year


def _check_range(start_date, end_date, exclude_id=None):
    if end_date < start_date:
        raise InvalidRangeError("End date cannot be before start date.")
    clashes = FiscalYear.objects.overlapping(start_date, end_date)
    if exclude_id is not None:
        clashes = clashes.exclude(pk=exclude_id)
    clash = clashes.first()
    if clash is not None:
        raise OverlappingRangeError(
            f"{start_date} – {end_date} overlaps fiscal year {clash.code}.")


def create_fiscal_year(code, start_date, end_date):
    """The very first fiscal year becomes current automatically."""
    with transaction.atomic():
        # serialise creators so the overlap check sees every row
        list(FiscalYear.objects.select_for_update())
        _check_range(start_date, end_date)
        year = FiscalYear(
            code=code,
            start_date=start_date,
            end_date=end_date,
            is_current=not FiscalYear.objects.exists(),
        )
        year.save()
    logger.info("Created fiscal year %s", code)
    return year


def set_current_fiscal_year(fiscal_year_id):
    with transaction.atomic():
        # lock every year: exactly one flag flips on, all others off
        list(FiscalYear.objects.select_for_update())
        year = _locked_year(fiscal_year_id)
        if year.is_closed:
            raise CannotActivateClosedYearError(
                f"Fiscal year {year.code} is closed and cannot be made current.")
        FiscalYear.objects.exclude(pk=year.pk).filter(is_current=True).update(is_current=False)
        year.is_current = True
        year.save(update_fields=["is_current", "updated_at"])
    logger.info("Fiscal year %s is now current", year.code)
    return year


def close_fiscal_year(fiscal_year_id):
    with transaction.atomic():
        year = _locked_year(fiscal_year_id)
        if year.is_closed:
            raise AlreadyClosedError(f"Fiscal year {year.code} is already closed.")
        # a closed year can never stay current
        year.is_closed = True
        year.is_current = False
        year.save(update_fields=["is_closed", "is_current", "updated_at"])
    logger.info("Closed fiscal year %s", year.code)
    return year


def edit_fiscal_year(fiscal_year_id, start_date, end_date, code=None):
    with transaction.atomic():
        list(FiscalYear.objects.select_for_update())
        year = _locked_year(fiscal_year_id)
        if year.is_closed:
            raise ImmutableClosedYearError(f"Fiscal year {year.code} is closed.")
        _check_range(start_date, end_date, exclude_id=year.pk)
        year.start_date = start_date
        year.end_date = end_date
        if code:
            year.code = code
        year.save()
    return year


def current_fiscal_year():
    return FiscalYear.objects.current()


def fiscal_year_for_date(day):
    return FiscalYear.objects.containing(day).first()


def set_opening_balances(fiscal_year_id, balances):
    """
    Upsert per-year opening balances from {account_id: amount}.
    Returns (inserted, updated).
    """
    inserted = updated = 0
    with transaction.atomic():
        year = _locked_year(fiscal_year_id)
        if year.is_closed:
            raise ImmutableClosedYearError(
                f"Opening balances of closed fiscal year {year.code} cannot change.")

        known = set(
            Account.objects.filter(pk__in=balances.keys()).values_list("pk", flat=True)
        )
        for account_id, amount in balances.items():
            if account_id not in known:
                raise UnknownAccountError(f"Account {account_id} not found.")
            _, created = AccountFiscalYearBalance.objects.update_or_create(
                account_id=account_id,
                fiscal_year=year,
                defaults={"opening_balance": to_amount(amount)},
            )
            if created:
                inserted += 1
            else:
                updated += 1
    return inserted, updated
