from datetime import date, datetime, timedelta, timezone

import pytest

from eduflow.core.exceptions import ValidationError
from eduflow.services.effective_batches import (
    LeaveOverlay,
    as_calendar_date,
    is_active_on,
    parse_calendar_date,
)


def test_as_calendar_date_drops_time_of_day():
    assert as_calendar_date(date(2024, 1, 10)) == date(2024, 1, 10)
    assert as_calendar_date(datetime(2024, 1, 10, 23, 59)) == date(2024, 1, 10)
    assert as_calendar_date("2024-01-10T18:30:00") == date(2024, 1, 10)
    assert as_calendar_date("2024-01-10 00:00:00") == date(2024, 1, 10)
    assert as_calendar_date(None) is None
    assert as_calendar_date("  ") is None


def test_as_calendar_date_normalizes_aware_datetimes_to_utc():
    ist = timezone(timedelta(hours=5, minutes=30))
    assert as_calendar_date(datetime(2024, 1, 11, 2, 0, tzinfo=ist)) == date(2024, 1, 10)


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2024, 1, 9), False),
        (date(2024, 1, 10), True),
        (date(2024, 1, 11), True),
        (date(2024, 1, 12), True),
        (date(2024, 1, 13), False),
    ],
)
def test_is_active_on_is_inclusive_at_both_ends(day, expected):
    assert is_active_on(date(2024, 1, 10), date(2024, 1, 12), day) is expected


def test_is_active_on_requires_both_bounds():
    assert is_active_on(None, date(2024, 1, 12), date(2024, 1, 11)) is False
    assert is_active_on(date(2024, 1, 10), None, date(2024, 1, 11)) is False


def test_parse_calendar_date():
    assert parse_calendar_date("2024-01-10") == date(2024, 1, 10)
    assert parse_calendar_date(" 2024-02-29 ") == date(2024, 2, 29)


@pytest.mark.parametrize("raw", [None, "", "2024/01/10", "2024-1-10", "20240110", "2023-02-29"])
def test_parse_calendar_date_rejects_bad_input(raw):
    with pytest.raises(ValidationError) as excinfo:
        parse_calendar_date(raw)
    assert excinfo.value.status_code == 400


def test_leave_overlay_tracks_each_absent_teacher():
    overlay = LeaveOverlay(absent_by_batch={"b1": {"t1", "t2"}, "b2": {"t1"}})
    assert overlay.is_absent("b1", "t2")
    assert not overlay.is_absent("b2", "t2")
    assert not overlay.is_absent("b1", None)
    assert overlay.batches_for("t1") == {"b1", "b2"}
    assert overlay.batches_for("t3") == set()
