from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from periods import ReportPeriod, current_date, local_day, to_utc_naive


def test_past_months_are_closed_and_current_month_is_open() -> None:
    today = date(2025, 6, 15)

    assert ReportPeriod(2025, 5).is_closed(today)
    assert ReportPeriod(2024, 12).is_closed(today)
    assert not ReportPeriod(2025, 6).is_closed(today)
    assert not ReportPeriod(2025, 7).is_closed(today)
    assert not ReportPeriod(2026, 1).is_closed(today)


def test_current_month_stays_open_on_its_last_day() -> None:
    assert not ReportPeriod(2025, 1).is_closed(date(2025, 1, 31))
    assert ReportPeriod(2025, 1).is_closed(date(2025, 2, 1))


def test_december_ends_at_new_year() -> None:
    period = ReportPeriod(2024, 12)

    assert period.start == date(2024, 12, 1)
    assert period.end == date(2025, 1, 1)
    assert period.utc_bounds(ZoneInfo("UTC")) == (
        datetime(2024, 12, 1),
        datetime(2025, 1, 1),
    )


def test_bounds_follow_reporting_timezone() -> None:
    start, end = ReportPeriod(2025, 7).utc_bounds(ZoneInfo("Europe/Berlin"))

    assert start == datetime(2025, 6, 30, 22, 0)
    assert end == datetime(2025, 7, 31, 22, 0)


def test_current_date_uses_pinned_timezone() -> None:
    now = datetime(2025, 3, 31, 22, 30, tzinfo=timezone.utc)

    assert current_date(ZoneInfo("UTC"), now) == date(2025, 3, 31)
    assert current_date(ZoneInfo("Europe/Berlin"), now) == date(2025, 4, 1)
    # Naive clocks are read as UTC.
    assert current_date(ZoneInfo("UTC"), now.replace(tzinfo=None)) == date(
        2025, 3, 31
    )


def test_utc_conversion_round_trip() -> None:
    berlin = ZoneInfo("Europe/Berlin")
    stored = to_utc_naive(datetime(2025, 1, 1, 0, 30), berlin)

    assert stored == datetime(2024, 12, 31, 23, 30)
    assert local_day(stored, berlin) == 1
    assert local_day(stored, ZoneInfo("UTC")) == 31
