from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from outlook_calendar.domain.date_window import compute_week_window, to_graph_timestamp

TOKYO = ZoneInfo("Asia/Tokyo")


@pytest.mark.parametrize("offset_hours", range(0, 24 * 21, 7))
def test_window_spans_sunday_to_saturday(offset_hours):
    now = datetime(2024, 5, 20, 3, 15, tzinfo=TOKYO) + timedelta(hours=offset_hours)
    w = compute_week_window(now)

    assert w.end == w.start + timedelta(days=6)
    assert w.start.weekday() == 6  # Sunday
    assert w.start <= now < w.start + timedelta(days=7)
    assert (w.start.hour, w.start.minute, w.start.second, w.start.microsecond) == (0, 0, 0, 0)


def test_sunday_starts_its_own_week():
    now = datetime(2024, 6, 2, 18, 45, 12, 999, tzinfo=TOKYO)  # Sunday evening
    w = compute_week_window(now)
    assert w.start == datetime(2024, 6, 2, tzinfo=TOKYO)
    assert w.end == datetime(2024, 6, 8, tzinfo=TOKYO)


def test_saturday_reaches_back_six_days():
    w = compute_week_window(datetime(2024, 6, 8, 23, 59))
    assert w.start == datetime(2024, 6, 2)
    assert w.start.tzinfo is None


def test_month_boundary():
    # Wednesday 1 May 2024 -> Sunday 28 April
    w = compute_week_window(datetime(2024, 5, 1, 9, 0, tzinfo=TOKYO))
    assert w.start.date().isoformat() == "2024-04-28"
    assert w.end.date().isoformat() == "2024-05-04"


def test_year_boundary():
    # Sunday 29 Dec 2024 through Saturday 4 Jan 2025
    w = compute_week_window(datetime(2025, 1, 2, 12, 0, tzinfo=TOKYO))
    assert w.start.date().isoformat() == "2024-12-29"
    assert w.end.date().isoformat() == "2025-01-04"
    w2 = compute_week_window(datetime(2024, 12, 29, 0, 0, tzinfo=TOKYO))
    assert w2.start == w.start


def test_graph_timestamp_is_utc_with_millis():
    start = datetime(2024, 6, 2, tzinfo=TOKYO)
    assert to_graph_timestamp(start) == "2024-06-01T15:00:00.000Z"
    assert to_graph_timestamp(datetime(2024, 6, 2, 1, 2, 3, 456789)) == "2024-06-02T01:02:03.456Z"
    assert to_graph_timestamp(datetime(2024, 6, 2, tzinfo=timezone.utc)) == "2024-06-02T00:00:00.000Z"
