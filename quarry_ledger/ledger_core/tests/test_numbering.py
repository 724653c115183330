import datetime

import pytest

from ledger_core.models import JournalEntry, NumberSeries
from ledger_core.services.numbering import (allocate_number, format_number,
                                            highest_sequence, parse_sequence,
                                            resync_series)


@pytest.mark.parametrize(
    "prefix, year, sequence, expected",
    [
        ("JE", 2025, 1, "JE/2025/0001"),
        ("ADV", 2024, 37, "ADV/2024/0037"),
        ("SAL", 2025, 12345, "SAL/2025/12345"),
    ],
)
def test_format_number(prefix, year, sequence, expected):
    assert format_number(prefix, year, sequence) == expected


def test_parse_sequence_ignores_other_series():
    assert parse_sequence("JE/2025/0042", "JE", 2025) == 42
    assert parse_sequence("JE/2024/0042", "JE", 2025) is None
    assert parse_sequence("JEX/2025/0042", "JE", 2025) is None
    assert parse_sequence("", "JE", 2025) is None


@pytest.mark.django_db
def test_highest_sequence_compares_numerically():
    day = datetime.date(2025, 1, 1)
    JournalEntry.objects.create(number="JE/2025/9999", date=day)
    JournalEntry.objects.create(number="JE/2025/10000", date=day)
    JournalEntry.objects.create(number="JE/2026/20000", date=day)

    assert highest_sequence("journal", "JE", 2025) == 10000


@pytest.mark.django_db
def test_allocate_creates_and_advances_series():
    assert allocate_number("invoice", "INV", 2025) == "INV/2025/0001"
    assert allocate_number("invoice", "INV", 2025) == "INV/2025/0002"
    assert NumberSeries.objects.get(scope="invoice", prefix="INV", year=2025).next_number == 3


@pytest.mark.django_db
def test_resync_never_moves_counter_backwards():
    NumberSeries.objects.create(scope="journal", prefix="JE", year=2025, next_number=50)
    JournalEntry.objects.create(number="JE/2025/0010", date=datetime.date(2025, 1, 1))

    assert resync_series("journal", "JE", 2025) == 50
