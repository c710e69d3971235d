from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from training_portal.core.dates import (
    ensure_utc,
    local_day_bounds,
    server_local_date_string,
    start_of_local_year,
)

IST = timezone(timedelta(hours=5, minutes=30))


@pytest.mark.parametrize(
    "moment,expected",
    [
        (datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc), "2024-01-01"),
        # 18:30 UTC is midnight in IST
        (datetime(2024, 1, 1, 18, 29, tzinfo=timezone.utc), "2024-01-01"),
        (datetime(2024, 1, 1, 18, 30, tzinfo=timezone.utc), "2024-01-02"),
        (datetime(2024, 12, 31, 20, 0, tzinfo=timezone.utc), "2025-01-01"),
        # Naive values are read as UTC
        (datetime(2024, 1, 1, 20, 0), "2024-01-02"),
    ],
)
def test_local_date_rolls_over_at_ist_midnight(moment, expected):
    assert server_local_date_string(moment) == expected


def test_local_day_bounds_cover_the_ist_day():
    start, end = local_day_bounds("2024-03-10")
    assert start == datetime(2024, 3, 9, 18, 30, tzinfo=timezone.utc)
    assert end.astimezone(IST).date() == date(2024, 3, 10)
    assert end - start == timedelta(days=1) - timedelta(microseconds=1)


def test_local_day_bounds_accept_date_objects():
    assert local_day_bounds(date(2024, 3, 10)) == local_day_bounds("2024-03-10")


def test_local_day_bounds_reject_garbage():
    with pytest.raises(ValueError):
        local_day_bounds("10/03/2024")


def test_start_of_local_year():
    moment = datetime(2024, 12, 31, 19, 0, tzinfo=timezone.utc)  # already 2025 in IST
    assert start_of_local_year(moment) == datetime(2024, 12, 31, 18, 30, tzinfo=timezone.utc)


def test_ensure_utc():
    assert ensure_utc(None) is None
    naive = datetime(2024, 1, 1, 12, 0)
    assert ensure_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    aware = datetime(2024, 1, 1, 17, 30, tzinfo=IST)
    assert ensure_utc(aware).tzinfo == timezone.utc
    assert ensure_utc(aware) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
