"""Event timestamp conversion and Slack date tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def to_unix_timestamp(date_string: str) -> int:
    """Convert an ISO-8601 event timestamp to whole Unix seconds.

    Millisecond precision, rounded half up. Timestamps without an offset
    are read as UTC.
    """
    parsed = datetime.fromisoformat(date_string)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    millis = (parsed - _EPOCH) // _MILLISECOND
    return (millis + 500) // 1000


def date_token(date_string: str) -> str:
    """Slack date directive showing local time, with the raw string as fallback."""
    return f"`<!date^{to_unix_timestamp(date_string)}^{{date_num}} {{time_secs}}|{date_string}>`"
