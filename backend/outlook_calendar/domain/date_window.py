"""Week boundary calculation used to scope the calendar view query."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

DAYS_IN_WINDOW = 6


@dataclass(frozen=True)
class DateWindow:
    start: datetime
    end: datetime


def compute_week_window(now: datetime) -> DateWindow:
    """Return the Sunday-based week containing ``now``.

    ``start`` is midnight of the Sunday at or before ``now``; ``end`` is six days
    later. The tzinfo of ``now`` (or its absence) is carried over to both bounds.
    """
    # weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (now.weekday() + 1) % 7
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start = midnight - timedelta(days=days_since_sunday)
    return DateWindow(start=start, end=start + timedelta(days=DAYS_IN_WINDOW))


def to_graph_timestamp(value: datetime) -> str:
    """Format as UTC ISO-8601 with millisecond precision, e.g. 2024-06-02T00:00:00.000Z.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
