from datetime import date, datetime

import pytest

from dosetrack.core.exceptions import InvalidPeriodError
from dosetrack.services.period import (
    CustomRange,
    RollingWindow,
    dated_entries,
    filter_by_period,
    parse_period,
)


def test_custom_single_day_covers_whole_civil_day(make_dose, now, policy):
    inside = [
        make_dose(datetime(2025, 7, 5, 0, 5)),
        make_dose(datetime(2025, 7, 5, 12, 0)),
        make_dose(datetime(2025, 7, 5, 23, 59)),
    ]
    outside = [
        make_dose(datetime(2025, 7, 4, 23, 59)),
        make_dose(datetime(2025, 7, 6, 0, 0)),
    ]
    window = CustomRange(date(2025, 7, 5), date(2025, 7, 5))

    assert filter_by_period(inside + outside, window, now, policy) == inside


def test_custom_range_uses_civil_date_of_aware_entries(make_dose, now, policy):
    # 02:00Z del 06 son las 23:00 civiles del 05
    entry = make_dose("2025-07-06T02:00:00Z")
    window = CustomRange(date(2025, 7, 5), date(2025, 7, 5))
    assert filter_by_period([entry], window, now, policy) == [entry]


def test_rolling_window_bounds(make_dose, now, policy):
    # hoy es 2025-07-10
    first_day = make_dose(datetime(2025, 7, 3, 8, 0))
    before = make_dose(datetime(2025, 7, 2, 23, 0))
    today = make_dose(datetime(2025, 7, 10, 20, 0))
    tomorrow = make_dose(datetime(2025, 7, 11, 8, 0))

    result = filter_by_period([first_day, before, today, tomorrow], RollingWindow(7), now, policy)
    assert result == [first_day, today]


def test_invalid_entries_are_skipped(make_dose, policy):
    good = make_dose(datetime(2025, 7, 5, 8, 0))
    dated, skipped = dated_entries([good, make_dose(None), make_dose("garbage")], policy)

    assert dated == [(good, date(2025, 7, 5))]
    assert skipped == 2


@pytest.mark.parametrize("period, days", [("7d", 7), ("30d", 30), ("90d", 90)])
def test_parse_rolling_period(period, days):
    assert parse_period(period) == RollingWindow(days)


def test_parse_custom_period():
    window = parse_period("custom", "2025-07-01", date(2025, 7, 3))
    assert window == CustomRange(date(2025, 7, 1), date(2025, 7, 3))
    assert window.days() == [date(2025, 7, 1), date(2025, 7, 2), date(2025, 7, 3)]
    assert not window.is_single_day


@pytest.mark.parametrize("args", [
    ("1y",),
    ("custom",),
    ("custom", "2025-07-01", None),
    ("custom", "2025-07-10", "2025-07-01"),
    ("custom", "07/01/2025", "2025-07-02"),
])
def test_invalid_period(args):
    with pytest.raises(InvalidPeriodError):
        parse_period(*args)


def test_rolling_window_needs_a_day():
    with pytest.raises(InvalidPeriodError):
        RollingWindow(0)
