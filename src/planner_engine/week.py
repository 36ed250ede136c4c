"""
Monday-anchored week windows.
"""

import logging
from datetime import date
from datetime import datetime
from enum import Enum

from planner_engine.clock import PlainWallClock
from planner_engine.clock import ZonedClock
from planner_engine.clock import ZonedInstant
from planner_engine.models import DAY_MS
from planner_engine.models import DAYS_IN_WEEK
from planner_engine.models import WeekWindow

_logger = logging.getLogger(__name__)


class WeekConvention(str, Enum):
    """How "seven days" is measured."""

    CALENDAR = "calendar"  # local midnight seven calendar dates later
    FIXED = "fixed"  # start + 7 * 24h, regardless of DST


def _anchor_date(anchor, zone: str, clock: ZonedClock) -> date:
    if isinstance(anchor, ZonedInstant):
        return clock.instant_to_wall_clock(anchor.epoch_ms, zone).wall.date()
    if isinstance(anchor, PlainWallClock):
        return anchor.date()
    if isinstance(anchor, datetime):
        return anchor.date()
    if isinstance(anchor, date):
        return anchor
    raise TypeError(f"Unsupported week anchor: {anchor!r}")


def add_calendar_days(instant: int, days: int, zone: str, clock: ZonedClock) -> int:
    """Same local time-of-day ``days`` calendar dates later."""
    if days == 0:
        return instant
    wall = clock.instant_to_wall_clock(instant, zone).wall
    return clock.wall_clock_to_instant(wall.plus_days(days), zone)


def compute_week_range(
    anchor,
    zone: str = "UTC",
    clock: ZonedClock | None = None,
    convention: WeekConvention | str = WeekConvention.CALENDAR,
) -> WeekWindow:
    """Window from local midnight of the Monday on or before ``anchor``.

    ``anchor`` is a date, a PlainWallClock or a ZonedInstant (read in ``zone``).
    """
    clock = clock or ZonedClock(default_zone=zone)
    convention = WeekConvention(convention)

    anchor_day = _anchor_date(anchor, zone, clock)
    # Monday is day 0
    monday = PlainWallClock.from_date(anchor_day).plus_days(-anchor_day.weekday())
    start = clock.wall_clock_to_instant(monday, zone)
    if convention is WeekConvention.FIXED:
        end = start + DAYS_IN_WEEK * DAY_MS
    else:
        end = clock.wall_clock_to_instant(monday.plus_days(DAYS_IN_WEEK), zone)

    _logger.debug("Week of %s in %s: %d..%d (%s)", anchor_day, zone, start, end, convention.value)
    return WeekWindow(start=start, end=end, zone=zone, convention=convention.value)


def shift_week(window: WeekWindow, weeks: int, clock: ZonedClock | None = None) -> WeekWindow:
    """Next/previous week navigation; recomputes from the shifted Monday."""
    clock = clock or ZonedClock(default_zone=window.zone)
    monday = clock.instant_to_wall_clock(window.start, window.zone).wall
    return compute_week_range(
        monday.plus_days(weeks * DAYS_IN_WEEK), window.zone, clock, window.convention
    )


def week_end(week_start: int, zone: str, clock: ZonedClock, convention=WeekConvention.CALENDAR):
    """End of the window that starts at ``week_start``."""
    if WeekConvention(convention) is WeekConvention.FIXED:
        return week_start + DAYS_IN_WEEK * DAY_MS
    return add_calendar_days(week_start, DAYS_IN_WEEK, zone, clock)


def day_starts(window: WeekWindow, clock: ZonedClock | None = None) -> list[int]:
    """Local midnight of each of the seven days (column headers)."""
    clock = clock or ZonedClock(default_zone=window.zone)
    monday = clock.instant_to_wall_clock(window.start, window.zone).wall
    return [
        clock.wall_clock_to_instant(monday.plus_days(offset), window.zone)
        for offset in range(DAYS_IN_WEEK)
    ]
