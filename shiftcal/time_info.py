"""Time-of-day values for shift type schedules.

A schedule is either ``Timed`` (start, end and the derived overnight flag and
duration) or ``Untimed`` (a shift type whose hours have not been defined for
a version yet). Storage always keeps a concrete row; this module keeps the
distinction explicit in code.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Union

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class TimeInfo:
    crosses_midnight: bool
    duration_minutes: int


@dataclass(frozen=True)
class Timed:
    start: time
    end: time
    crosses_midnight: bool
    duration_minutes: int

    @property
    def is_timed(self) -> bool:
        return True


@dataclass(frozen=True)
class Untimed:
    start: None = None
    end: None = None
    crosses_midnight: bool = False
    duration_minutes: int = 0

    @property
    def is_timed(self) -> bool:
        return False


ScheduleTimes = Union[Timed, Untimed]
UNTIMED = Untimed()


def parse_clock(value: str | time) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a ``time``; seconds are dropped."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(hours, minutes)


def format_clock(value: time | None) -> str | None:
    if value is None:
        return None
    return value.strftime("%H:%M")


def _minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def compute_time_info(start: str | time | None, end: str | time | None) -> TimeInfo:
    has_start = start is not None
    has_end = end is not None
    if has_start != has_end:
        raise ValueError("start_time and end_time must both be set or both be empty.")
    if not has_start:
        return TimeInfo(crosses_midnight=False, duration_minutes=0)

    start_minutes = _minutes_of_day(parse_clock(start))
    end_minutes = _minutes_of_day(parse_clock(end))
    crosses_midnight = start_minutes > end_minutes
    if crosses_midnight:
        duration = MINUTES_PER_DAY - start_minutes + end_minutes
    else:
        duration = end_minutes - start_minutes
    return TimeInfo(crosses_midnight=crosses_midnight, duration_minutes=duration)


def schedule_times(start: str | time | None, end: str | time | None) -> ScheduleTimes:
    info = compute_time_info(start, end)
    if start is None:
        return UNTIMED
    return Timed(
        start=parse_clock(start),
        end=parse_clock(end),
        crosses_midnight=info.crosses_midnight,
        duration_minutes=info.duration_minutes,
    )
