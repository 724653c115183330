import logging
from dataclasses import dataclass, field
from datetime import date as date_type
from decimal import Decimal, InvalidOperation

from django.core.exceptions import (ImproperlyConfigured, ObjectDoesNotExist,
                                    ValidationError)
from django.db import DatabaseError, transaction

from ..conf import posting_policy
from ..exceptions import (ClosedFiscalYearError, InvalidAmountError,
                          TooFewLinesError, UnbalancedJournalError,
                          UnknownAccountError)
from ..models import Account, FiscalYear, JournalEntry, JournalLine
from .balances import recompute_balance
from .numbering import create_numbered

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_amount(value):
    """Coerce a money value to Decimal without going through float."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmountError(f"Not a valid amount: {value!r}")
    # NaN and Infinity parse fine but break every comparison downstream
    if not amount.is_finite():
        raise InvalidAmountError(f"Not a finite amount: {value!r}")
    return amount


# ----------------------------
# Drafts
# ----------------------------
@dataclass(frozen=True)
class EntryLine:
    """
    One line of a draft journal.
    account: Account instance, primary key or account code.
    amount: signed; positive = debit, negative = credit.
    """

    account: object
    amount: Decimal
    description: str = ""

    @classmethod
    def debit(cls, account, amount, description=""):
        return cls(account, to_amount(amount), description)

    @classmethod
    def credit(cls, account, amount, description=""):
        return cls(account, -to_amount(amount), description)


@dataclass
class JournalDraft:
    date: date_type
    lines: list = field(default_factory=list)
    reference: str = ""
    description: str = ""
    prefix: str = "JE"
    posted_by: object = None
    auto_generated: bool = False
    source_type: str = ""
    source_id: int = None


# ----------------------------
# Validation
# ----------------------------
def _check_lines(lines):
    """Return (debits, credits) or raise. No database access."""
    if len(lines) < 2:
        raise TooFewLinesError("A journal entry needs at least two lines.")

    debits = Decimal("0.00")
    credits = Decimal("0.00")
    for line in lines:
        amount = to_amount(line.amount)
        if amount == 0:
            raise InvalidAmountError(
                "Each line must debit or credit a non-zero amount.")
        if amount != amount.quantize(CENT):
            raise InvalidAmountError(
                f"Amount {amount} has more than two decimal places.")
        if amount > 0:
            debits += amount
        else:
            credits -= amount

    # exact Decimal equality, no tolerance
    if debits != credits:
        raise UnbalancedJournalError(
            f"Journal not balanced: debits={debits}, credits={credits}")
    return debits, credits


def _resolve_account(ref):
    if isinstance(ref, Account):
        lookup = {"pk": ref.pk}
    elif isinstance(ref, int):
        lookup = {"pk": ref}
    else:
        lookup = {"code": str(ref)}
    account = Account.objects.active().filter(**lookup).first()
    if account is None:
        raise UnknownAccountError(
            f"Account {ref} does not exist or is inactive.")
    return account


def _check_open_period(day):
    closed = FiscalYear.objects.containing(day).filter(is_closed=True).first()
    if closed is not None:
        raise ClosedFiscalYearError(
            f"Cannot post on {day}: fiscal year {closed.code} is closed.")


# ----------------------------
# Posting
# ----------------------------
def post_journal(draft):
    """
    Validate and persist a balanced journal entry, then refresh the
    balance of every touched account. All or nothing.
    """
    # cheap checks first, no database access
    debits, credits = _check_lines(draft.lines)

    with transaction.atomic():
        # then the checks that need the database
        accounts = [_resolve_account(line.account) for line in draft.lines]
        _check_open_period(draft.date)

        def write(number):
            entry = JournalEntry.objects.create(
                number=number,
                date=draft.date,
                reference=draft.reference,
                description=draft.description,
                total_debit=debits,
                total_credit=credits,
                posted_by=draft.posted_by,
                auto_generated=draft.auto_generated,
                source_type=draft.source_type,
                source_id=draft.source_id,
            )
            JournalLine.objects.bulk_create(
                JournalLine(
                    entry=entry,
                    account=account,
                    debit=max(to_amount(line.amount), Decimal("0.00")),
                    credit=max(-to_amount(line.amount), Decimal("0.00")),
                    description=line.description,
                )
                for line, account in zip(draft.lines, accounts)
            )
            return entry

        # entry and lines share the savepoint of the number
        entry = create_numbered("journal", draft.prefix, draft.date.year, write)

        # same transaction: balances never lag behind the lines
        for account_id in sorted({a.pk for a in accounts}):
            recompute_balance(account_id)

    logger.info(
        "Posted %s (%s) Dr %s / Cr %s", entry.number, draft.description, debits, credits
    )
    return entry


def post_journal_entry(lines, date, **metadata):
    """Shorthand for post_journal(JournalDraft(date=date, lines=lines, ...))."""
    return post_journal(JournalDraft(date=date, lines=list(lines), **metadata))


def reverse_journal_entry(entry, date=None, prefix="REV", description=None,
                          posted_by=None):
    """Post the mirror image of ``entry``; the original stays untouched."""
    lines = [
        EntryLine(line.account_id, -line.signed_amount, line.description)
        for line in entry.lines.all()
    ]
    return post_journal(JournalDraft(
        date=date or entry.date,
        lines=lines,
        reference=entry.number,
        description=description or f"Reversal of {entry.number}",
        prefix=prefix,
        posted_by=posted_by,
        auto_generated=True,
        source_type=entry.source_type,
        source_id=entry.source_id,
    ))


# ----------------------------
# Auxiliary postings
# ----------------------------
# Everything a posting can fail with: ledger validation, unknown or
# missing accounts, numbering collisions.
POSTING_FAILURES = (ValidationError, ObjectDoesNotExist,
                    ImproperlyConfigured, DatabaseError)


def run_auxiliary_posting(post, label):
    """
    Run ``post()`` (returns a JournalEntry) under the configured policy.

    strict: errors propagate and roll back the caller's transaction.
    best_effort: the posting runs in a savepoint; a failure is logged and
    None is returned so the business record is kept without an entry.
    """
    if posting_policy() == "strict":
        return post()
    try:
        with transaction.atomic():
            return post()
    except POSTING_FAILURES:
        logger.exception(
            "Ledger posting for %s failed; record kept without a journal "
            "entry until backfill_missing_postings() runs", label)
        return None
