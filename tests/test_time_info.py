from __future__ import annotations

from datetime import time

import pytest

from shiftcal.time_info import UNTIMED, Timed, compute_time_info, format_clock, parse_clock, schedule_times


def test_overnight_shift_crosses_midnight():
    info = compute_time_info("22:30", "07:00")

    assert info.crosses_midnight is True
    assert info.duration_minutes == 510


def test_day_shift_stays_within_the_day():
    info = compute_time_info("06:30", "15:00")

    assert info.crosses_midnight is False
    assert info.duration_minutes == 510


def test_seconds_are_accepted_and_ignored():
    info = compute_time_info("14:30:59", "23:00:00")

    assert info.crosses_midnight is False
    assert info.duration_minutes == 510
    assert parse_clock("14:30:59") == time(14, 30)


def test_equal_start_and_end_is_zero_length():
    info = compute_time_info("08:00", "08:00")

    assert info.crosses_midnight is False
    assert info.duration_minutes == 0


def test_both_absent_is_untimed():
    info = compute_time_info(None, None)

    assert info.crosses_midnight is False
    assert info.duration_minutes == 0
    assert schedule_times(None, None) is UNTIMED
    assert UNTIMED.is_timed is False


@pytest.mark.parametrize(("start", "end"), [("08:00", None), (None, "17:00")])
def test_one_sided_pair_is_rejected(start, end):
    with pytest.raises(ValueError):
        compute_time_info(start, end)


@pytest.mark.parametrize("value", ["24:00", "7", "ab:cd", "12:60", "1:2:3:4"])
def test_invalid_clock_values_are_rejected(value):
    with pytest.raises(ValueError):
        parse_clock(value)


def test_schedule_times_builds_timed_value():
    times = schedule_times(time(22, 30), "07:00")

    assert isinstance(times, Timed)
    assert times.is_timed is True
    assert times.start == time(22, 30)
    assert times.end == time(7, 0)
    assert format_clock(times.start) == "22:30"
    assert format_clock(None) is None
