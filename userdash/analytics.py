"""Aggregation of identity-provider records into dashboard analytics."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .errors import InvalidDateRange
from .models import ActivityEntry, AnalyticsSnapshot, DateRange, UserRecord, parse_timestamp


def _parse_bound(value: Optional[str], label: str):
    if value is None or not value.strip():
        return None
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise InvalidDateRange(f"Invalid {label} date: {value!r}") from exc


def end_of_day(moment):
    """Return the last representable millisecond of ``moment``'s calendar day."""

    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)


def parse_date_range(start: Optional[str] = None, end: Optional[str] = None) -> DateRange:
    """Turn optional ``start``/``end`` query values into a :class:`DateRange`.

    Blank values leave that side open. The upper bound covers its whole day so
    ``end=2024-01-05`` keeps everything up to ``2024-01-05T23:59:59.999Z``.
    """

    lower = _parse_bound(start, "start")
    upper = _parse_bound(end, "end")
    if upper is not None:
        upper = end_of_day(upper)
    return DateRange(start=lower, end=upper)


def created_in_range(record: UserRecord, date_range: DateRange) -> bool:
    return date_range.contains(record.created_at)


def signed_in_in_range(record: UserRecord, date_range: DateRange) -> bool:
    if record.last_sign_in_at is None:
        return False
    return date_range.contains(record.last_sign_in_at)


def _to_entry(record: UserRecord, timestamp) -> ActivityEntry:
    return ActivityEntry(name=record.name, email=record.email, timestamp=timestamp)


def aggregate(records: Sequence[UserRecord], date_range: DateRange | None = None) -> AnalyticsSnapshot:
    """Compute the dashboard snapshot for ``records`` within ``date_range``.

    ``total_users`` always counts the full fetch. Every other figure is scoped
    to users created inside the range, and the sign-in figures additionally
    require the last sign-in to fall inside the same range.
    """

    window = date_range or DateRange()

    filtered: List[UserRecord] = [record for record in records if created_in_range(record, window)]
    signed_in: List[UserRecord] = [record for record in filtered if signed_in_in_range(record, window)]

    # activeUsers and signIns share one definition; both are kept for API parity.
    active_users = sum(1 for record in filtered if signed_in_in_range(record, window))

    signups = sorted(filtered, key=lambda record: record.created_at, reverse=True)
    sign_ins = sorted(signed_in, key=lambda record: record.last_sign_in_at, reverse=True)

    return AnalyticsSnapshot(
        total_users=len(records),
        active_users=active_users,
        sign_ups=len(filtered),
        sign_ins=len(signed_in),
        recent_signups=tuple(_to_entry(record, record.created_at) for record in signups),
        recent_sign_ins=tuple(_to_entry(record, record.last_sign_in_at) for record in sign_ins),
    )


__all__ = [
    "aggregate",
    "created_in_range",
    "end_of_day",
    "parse_date_range",
    "signed_in_in_range",
]
