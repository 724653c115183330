"""
Sequential document numbers: "{PREFIX}/{YEAR}/{seq:04d}".

Each (scope, prefix, year) has a NumberSeries counter row that is locked
while a number is handed out. The unique constraint on the numbered
model is the last line of defence; a collision re-synchronises the
counter from the stored numbers and the caller's write is retried.
"""
import logging
import re

from django.db import IntegrityError, transaction

from ..conf import ledger_setting
from ..exceptions import DuplicateNumberError
from ..models import CustomerPrepayment, Invoice, JournalEntry, NumberSeries

logger = logging.getLogger(__name__)

# scope → (model, number field)
NUMBERED_MODELS = {
    "journal": (JournalEntry, "number"),
    "invoice": (Invoice, "number"),
    "prepayment": (CustomerPrepayment, "number"),
}


def format_number(prefix, year, sequence):
    return f"{prefix}/{year}/{sequence:04d}"


def parse_sequence(number, prefix, year):
    """Return the sequence part of ``number`` or None if it is not in the series."""
    match = re.fullmatch(rf"{re.escape(prefix)}/{year}/(\d+)", number or "")
    return int(match.group(1)) if match else None


def highest_sequence(scope, prefix, year):
    """Highest sequence already stored for prefix+year, 0 when none."""
    model, field = NUMBERED_MODELS[scope]
    numbers = model.objects.filter(
        **{f"{field}__startswith": f"{prefix}/{year}/"}
    ).values_list(field, flat=True)
    # parse every value: "…/10000" sorts before "…/9999" as a string
    sequences = [parse_sequence(n, prefix, year) for n in numbers]
    return max((s for s in sequences if s is not None), default=0)


def _locked_series(scope, prefix, year):
    series = (
        NumberSeries.objects.select_for_update()
        .filter(scope=scope, prefix=prefix, year=year)
        .first()
    )
    if series is not None:
        return series
    try:
        with transaction.atomic():
            NumberSeries.objects.create(
                scope=scope,
                prefix=prefix,
                year=year,
                next_number=highest_sequence(scope, prefix, year) + 1,
            )
    except IntegrityError:
        pass  # another transaction created the row first; lock theirs
    return NumberSeries.objects.select_for_update().get(
        scope=scope, prefix=prefix, year=year
    )


@transaction.atomic
def allocate_number(scope, prefix, year):
    """Hand out the next number of the series and advance the counter."""
    # Lock the counter row; concurrent allocations queue here
    series = _locked_series(scope, prefix, year)
    sequence = series.next_number
    series.next_number = sequence + 1
    series.save(update_fields=["next_number"])
    return format_number(prefix, year, sequence)


@transaction.atomic
def resync_series(scope, prefix, year):
    """Move the counter past every number already stored."""
    series = _locked_series(scope, prefix, year)
    floor = highest_sequence(scope, prefix, year) + 1
    if series.next_number < floor:
        series.next_number = floor
        series.save(update_fields=["next_number"])
    return series.next_number


def create_numbered(scope, prefix, year, create):
    """
    Call ``create(number)`` with a freshly allocated number.

    ``create`` runs inside its own savepoint so that a collision on the
    number leaves nothing behind; it is retried with a new number up to
    LEDGER["NUMBER_RETRY_ATTEMPTS"] times before DuplicateNumberError.
    """
    model, field = NUMBERED_MODELS[scope]
    attempts = ledger_setting("NUMBER_RETRY_ATTEMPTS")
    for attempt in range(1, attempts + 1):
        number = allocate_number(scope, prefix, year)
        try:
            with transaction.atomic():
                return create(number)
        except IntegrityError:
            if not model.objects.filter(**{field: number}).exists():
                raise  # some other constraint failed
            logger.warning(
                "Number %s already taken (attempt %d/%d), resyncing series",
                number, attempt, attempts,
            )
            resync_series(scope, prefix, year)
    raise DuplicateNumberError(
        f"Could not allocate a unique {scope} number for {prefix}/{year} "
        f"after {attempts} attempts."
    )
