from datetime import date, datetime, timedelta, timezone

import pytest

from binclean.bookings.schedule import (
    SERVICE_WINDOW,
    format_day_month,
    format_long,
    next_service_dates,
    normalize_service_date,
)


def test_formats():
    d = date(2025, 1, 6)
    assert format_long(d) == "Monday, January 6, 2025"
    assert format_day_month(d) == "Jan 6"


@pytest.mark.parametrize(
    "today, first",
    [
        (date(2025, 1, 1), date(2025, 1, 6)),   # mercredi
        (date(2025, 1, 5), date(2025, 1, 6)),   # dimanche
        (date(2025, 1, 6), date(2025, 1, 13)),  # lundi: semaine suivante
    ],
)
def test_next_service_dates_are_next_mondays(today, first):
    dates = next_service_dates(today)
    assert [d["date"] for d in dates] == [(first + timedelta(weeks=i)).isoformat() for i in range(3)]
    assert [d["id"] for d in dates] == [1, 2, 3]
    assert all(d["window"] == SERVICE_WINDOW for d in dates)


def test_next_service_dates_labels():
    first = next_service_dates(date(2025, 1, 1))[0]
    assert first["formatted"] == "Monday, January 6, 2025"
    assert first["dayMonth"] == "Jan 6"


def test_normalize_naive_date_is_utc():
    out = normalize_service_date(datetime(2025, 1, 6))
    assert out == {"iso": "2025-01-06T00:00:00+00:00", "formatted": "Monday, January 6, 2025"}


def test_normalize_keeps_local_day_for_label():
    # Lundi 6 janvier à Brisbane = dimanche 5 janvier en UTC
    brisbane = timezone(timedelta(hours=10))
    out = normalize_service_date(datetime(2025, 1, 6, 7, 0, tzinfo=brisbane))
    assert out["iso"] == "2025-01-05T21:00:00+00:00"
    assert out["formatted"] == "Monday, January 6, 2025"
