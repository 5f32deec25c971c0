import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userdash.matcher import match_email, match_emails
from userdash.models import ActivityEntry, ActivityKind, EmailQueryResult, LastActivity, parse_timestamp

T1 = parse_timestamp("2024-01-01T00:00:00Z")
T2 = parse_timestamp("2024-01-02T08:30:00Z")


def _entry(email, timestamp, name="User"):
    return ActivityEntry(name=name, email=email, timestamp=timestamp)


def test_exact_tie_resolves_to_signup():
    result = match_email("a@x.com", [_entry("a@x.com", T1)], [_entry("a@x.com", T1)])

    assert result.found is True
    assert result.last_activity == LastActivity(kind=ActivityKind.SIGNUP, timestamp=T1)


def test_later_sign_in_wins():
    result = match_email("a@x.com", [_entry("a@x.com", T1)], [_entry("a@x.com", T2)])

    assert result.last_activity == LastActivity(kind=ActivityKind.SIGNIN, timestamp=T2)


def test_sign_in_only_match():
    result = match_email("b@x.com", [], [_entry("b@x.com", T2)])

    assert result.found is True
    assert result.last_activity.kind is ActivityKind.SIGNIN


def test_found_and_missing_emails_in_input_order():
    results = match_emails(["a@x.com", "missing@x.com"], [_entry("a@x.com", T1)], [])

    assert results == [
        EmailQueryResult(
            email="a@x.com",
            found=True,
            last_activity=LastActivity(kind=ActivityKind.SIGNUP, timestamp=T1),
        ),
        EmailQueryResult(email="missing@x.com", found=False, last_activity=None),
    ]


def test_duplicates_are_preserved():
    results = match_emails(["a@x.com", "a@x.com"], [_entry("a@x.com", T1)], [])

    assert [result.email for result in results] == ["a@x.com", "a@x.com"]
    assert all(result.found for result in results)


def test_lookup_is_case_sensitive():
    result = match_email("A@x.com", [_entry("a@x.com", T1)], [_entry("a@x.com", T2)])

    assert result.found is False
    assert result.last_activity is None


def test_first_matching_entry_is_used():
    signups = [_entry("a@x.com", T2, name="newer"), _entry("a@x.com", T1, name="older")]

    result = match_email("a@x.com", signups, [])

    assert result.last_activity.timestamp == T2
