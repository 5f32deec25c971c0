import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userdash.analytics import (
    aggregate,
    created_in_range,
    parse_date_range,
    signed_in_in_range,
)
from userdash.errors import InvalidDateRange
from userdash.models import DateRange, UserRecord, parse_timestamp


def _record(user_id, created, last_sign_in=None, *, name=None, email=None):
    return UserRecord(
        id=user_id,
        created_at=parse_timestamp(created),
        last_sign_in_at=parse_timestamp(last_sign_in) if last_sign_in else None,
        name=name or user_id,
        email=email or f"{user_id}@example.com",
    )


RECORDS = [
    _record("alice", "2024-01-02T09:00:00Z", "2024-01-04T12:00:00Z"),
    _record("bob", "2024-01-05T18:30:00Z"),
    _record("carol", "2023-12-30T08:00:00Z", "2024-01-03T10:00:00Z"),
    _record("dave", "2024-01-03T11:00:00Z", "2024-01-09T07:00:00Z"),
    _record("erin", "2024-01-06T00:00:00Z", "2024-01-06T01:00:00Z"),
]


def test_total_users_ignores_range():
    date_range = parse_date_range("2024-01-03", "2024-01-04")
    snapshot = aggregate(RECORDS, date_range)

    assert snapshot.total_users == len(RECORDS)
    assert aggregate(RECORDS).total_users == len(RECORDS)


@pytest.mark.parametrize(
    "start,end",
    [
        (None, None),
        ("2024-01-01", None),
        (None, "2024-01-05"),
        ("2024-01-02", "2024-01-05"),
        ("2025-01-01", "2025-02-01"),
    ],
)
def test_counts_match_list_lengths(start, end):
    snapshot = aggregate(RECORDS, parse_date_range(start, end))

    assert snapshot.sign_ups == len(snapshot.recent_signups)
    assert snapshot.sign_ins == len(snapshot.recent_sign_ins)
    assert snapshot.active_users == snapshot.sign_ins


def test_signups_sorted_by_creation_descending_for_any_order():
    snapshot = aggregate(list(reversed(RECORDS)))

    timestamps = [entry.timestamp for entry in snapshot.recent_signups]
    assert timestamps == sorted(timestamps, reverse=True)
    assert [entry.name for entry in snapshot.recent_signups] == ["erin", "bob", "dave", "alice", "carol"]


def test_sign_ins_only_include_users_with_activity():
    snapshot = aggregate(RECORDS)

    names = [entry.name for entry in snapshot.recent_sign_ins]
    assert "bob" not in names
    assert names == ["dave", "erin", "alice", "carol"]
    assert snapshot.recent_sign_ins[0].timestamp == parse_timestamp("2024-01-09T07:00:00Z")


def test_sign_in_window_is_checked_independently_of_creation():
    snapshot = aggregate(RECORDS, parse_date_range("2024-01-01", "2024-01-05"))

    assert [entry.name for entry in snapshot.recent_signups] == ["bob", "dave", "alice"]
    # dave signed up in range but last signed in after it; carol signed in
    # during the range but was created before it.
    assert [entry.name for entry in snapshot.recent_sign_ins] == ["alice"]
    assert snapshot.sign_ins == 1
    assert snapshot.active_users == 1


def test_aggregate_is_idempotent():
    date_range = parse_date_range("2024-01-02", "2024-01-06")

    assert aggregate(RECORDS, date_range) == aggregate(RECORDS, date_range)


def test_end_date_covers_the_whole_day():
    date_range = parse_date_range(None, "2024-01-05")

    assert date_range.end == datetime(2024, 1, 5, 23, 59, 59, 999000, tzinfo=timezone.utc)
    assert date_range.contains(parse_timestamp("2024-01-05T23:59:59.999Z"))
    assert not date_range.contains(parse_timestamp("2024-01-06T00:00:00.000Z"))


def test_start_date_is_inclusive():
    date_range = parse_date_range("2024-01-05", None)

    assert date_range.end is None
    assert date_range.contains(parse_timestamp("2024-01-05T00:00:00Z"))
    assert not date_range.contains(parse_timestamp("2024-01-04T23:59:59.999Z"))


def test_blank_bounds_are_unbounded():
    assert parse_date_range("", "  ") == DateRange()


@pytest.mark.parametrize("start,end", [("yesterday", None), (None, "2024-13-45"), (None, "20240105")])
def test_invalid_dates_are_rejected(start, end):
    with pytest.raises(InvalidDateRange):
        parse_date_range(start, end)


def test_created_in_range_predicate():
    record = _record("frank", "2024-01-05T12:00:00Z", "2024-02-01T00:00:00Z")

    assert created_in_range(record, parse_date_range("2024-01-05", "2024-01-05"))
    assert not created_in_range(record, parse_date_range("2024-01-06", None))
    assert created_in_range(record, DateRange())


def test_signed_in_in_range_predicate():
    active = _record("gina", "2023-01-01T00:00:00Z", "2024-01-05T12:00:00Z")
    dormant = _record("hank", "2024-01-05T00:00:00Z")

    window = parse_date_range("2024-01-05", "2024-01-05")
    assert signed_in_in_range(active, window)
    assert not signed_in_in_range(active, parse_date_range(None, "2024-01-04"))
    assert not signed_in_in_range(dormant, window)
    assert not signed_in_in_range(dormant, DateRange())


def test_entries_project_name_and_email():
    snapshot = aggregate([_record("ivy", "2024-01-01T00:00:00Z", name="Ivy", email="ivy@x.com")])

    entry = snapshot.recent_signups[0]
    assert (entry.name, entry.email) == ("Ivy", "ivy@x.com")
    assert entry.timestamp == parse_timestamp("2024-01-01T00:00:00Z")
