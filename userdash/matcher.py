"""Cross-reference uploaded email addresses against dashboard activity."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .models import ActivityEntry, ActivityKind, EmailQueryResult, LastActivity


def _first_match(email: str, entries: Iterable[ActivityEntry]) -> Optional[ActivityEntry]:
    for entry in entries:
        if entry.email == email:
            return entry
    return None


def _latest_activity(
    signup: Optional[ActivityEntry], signin: Optional[ActivityEntry]
) -> Optional[LastActivity]:
    if signup is not None and signin is not None:
        if signin.timestamp > signup.timestamp:
            return LastActivity(kind=ActivityKind.SIGNIN, timestamp=signin.timestamp)
        return LastActivity(kind=ActivityKind.SIGNUP, timestamp=signup.timestamp)
    if signup is not None:
        return LastActivity(kind=ActivityKind.SIGNUP, timestamp=signup.timestamp)
    if signin is not None:
        return LastActivity(kind=ActivityKind.SIGNIN, timestamp=signin.timestamp)
    return None


def match_email(
    email: str,
    signups: Sequence[ActivityEntry],
    signins: Sequence[ActivityEntry],
) -> EmailQueryResult:
    """Look up ``email`` (case-sensitive) in the sign-up and sign-in lists.

    When both lists contain the address the later timestamp wins, and an exact
    tie is reported as the sign-up.
    """

    signup = _first_match(email, signups)
    signin = _first_match(email, signins)
    return EmailQueryResult(
        email=email,
        found=signup is not None or signin is not None,
        last_activity=_latest_activity(signup, signin),
    )


def match_emails(
    emails: Iterable[str],
    signups: Sequence[ActivityEntry],
    signins: Sequence[ActivityEntry],
) -> List[EmailQueryResult]:
    """Return one result per input email, in input order and without deduplication."""

    return [match_email(email, signups, signins) for email in emails]


__all__ = ["match_email", "match_emails"]
