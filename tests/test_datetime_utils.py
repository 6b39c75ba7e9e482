from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from conftest import IST, ist

from hrms_attendance.common.datetime_utils import (
    WorkCalendar,
    format_12h,
    from_storage,
    parse_hhmm,
    parse_iso_date,
    to_storage,
)
from hrms_attendance.core.exceptions import ValidationError


def test_parse_hhmm_accepts_single_digit_hour():
    assert parse_hhmm("7:05") == time(7, 5)
    assert parse_hhmm("23:59") == time(23, 59)


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "12:5"])
def test_parse_hhmm_rejects(value):
    with pytest.raises(ValidationError):
        parse_hhmm(value)


def test_parse_iso_date():
    assert parse_iso_date("2025-03-10") == date(2025, 3, 10)
    with pytest.raises(ValidationError):
        parse_iso_date("10/03/2025")


def test_format_12h():
    assert format_12h(time(0, 5)) == "12:05 AM"
    assert format_12h(time(12, 0)) == "12:00 PM"
    assert format_12h(time(18, 30)) == "6:30 PM"


def test_storage_round_trip_is_utc():
    instant = ist(2025, 3, 10, 9, 0)

    stored = to_storage(instant)

    assert stored == datetime(2025, 3, 10, 3, 30)
    assert stored.tzinfo is None
    assert from_storage(stored, IST) == instant


def test_to_storage_refuses_naive_values():
    with pytest.raises(ValueError):
        to_storage(datetime(2025, 3, 10, 9, 0))


def test_local_date_follows_reference_zone():
    cal = WorkCalendar(tz=IST)

    assert cal.local_date(datetime(2025, 3, 10, 19, 0, tzinfo=timezone.utc)) == date(2025, 3, 11)


def test_working_days_skip_configured_weekend():
    cal = WorkCalendar.from_settings("Asia/Kolkata", [4, 5])

    days = cal.working_days(date(2025, 3, 13), date(2025, 3, 17))

    assert days == [date(2025, 3, 13), date(2025, 3, 16), date(2025, 3, 17)]
