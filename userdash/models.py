"""Domain models for the user analytics dashboard."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

ANONYMOUS_NAME = "Anonymous"
MISSING_EMAIL = "No email"

# YYYY-MM-DD[THH:MM[:SS[.fff[fff]]]][Z or +HH:MM]
_ISO_TIMESTAMP = re.compile(
    r"\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d{3}(?:\d{3})?)?)?)?"
    r"(?:[Zz]|[+-]\d{2}:\d{2})?"
)


def parse_timestamp(value: Any) -> datetime:
    """Normalise a provider timestamp into an aware UTC datetime.

    Clerk reports instants as epoch milliseconds; ISO-8601 strings are accepted
    as well so fixtures and other providers can be fed through the same path.
    """

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, bool):
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Timestamp must not be empty")
        if not _ISO_TIMESTAMP.fullmatch(cleaned):
            raise ValueError(f"Unsupported timestamp format: {value!r}")
        if cleaned.endswith(("Z", "z")):
            cleaned = cleaned[:-1] + "+00:00"
        moment = datetime.fromisoformat(cleaned)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _first_text(*candidates: Any) -> Optional[str]:
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return None


def _primary_email(addresses: Any) -> Optional[str]:
    if not isinstance(addresses, list) or not addresses:
        return None
    first = addresses[0]
    if isinstance(first, Mapping):
        return _first_text(first.get("email_address"))
    return None


@dataclass(frozen=True)
class UserRecord:
    """Snapshot of an identity-provider account."""

    id: str
    created_at: datetime
    last_sign_in_at: Optional[datetime]
    name: str
    email: str

    @staticmethod
    def from_payload(data: Mapping[str, Any]) -> "UserRecord":
        """Build a :class:`UserRecord` from a raw provider user object."""

        if data.get("created_at") is None:
            raise ValueError("User payload is missing 'created_at'")

        last_sign_in = data.get("last_sign_in_at")
        return UserRecord(
            id=str(data.get("id") or ""),
            created_at=parse_timestamp(data["created_at"]),
            last_sign_in_at=parse_timestamp(last_sign_in) if last_sign_in is not None else None,
            name=_first_text(data.get("first_name"), data.get("username")) or ANONYMOUS_NAME,
            email=_primary_email(data.get("email_addresses")) or MISSING_EMAIL,
        )


@dataclass(frozen=True)
class DateRange:
    """Inclusive filter window; ``None`` leaves that side unbounded."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


@dataclass(frozen=True)
class ActivityEntry:
    name: str
    email: str
    timestamp: datetime


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Aggregated dashboard figures for one date range."""

    total_users: int
    active_users: int
    sign_ups: int
    sign_ins: int
    recent_signups: Tuple[ActivityEntry, ...]
    recent_sign_ins: Tuple[ActivityEntry, ...]

    @classmethod
    def empty(cls) -> "AnalyticsSnapshot":
        return cls(
            total_users=0,
            active_users=0,
            sign_ups=0,
            sign_ins=0,
            recent_signups=(),
            recent_sign_ins=(),
        )


class ActivityKind(str, Enum):
    SIGNUP = "signup"
    SIGNIN = "signin"


@dataclass(frozen=True)
class LastActivity:
    kind: ActivityKind
    timestamp: datetime


@dataclass(frozen=True)
class EmailQueryResult:
    """Outcome of looking up one uploaded email address."""

    email: str
    found: bool
    last_activity: Optional[LastActivity] = None


__all__ = [
    "ANONYMOUS_NAME",
    "MISSING_EMAIL",
    "ActivityEntry",
    "ActivityKind",
    "AnalyticsSnapshot",
    "DateRange",
    "EmailQueryResult",
    "LastActivity",
    "UserRecord",
    "parse_timestamp",
]
