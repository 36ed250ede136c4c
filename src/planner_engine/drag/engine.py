"""
Pointer geometry -> snapped, clamped event interval.

Everything here is pure: the same inputs always give the same interval and
nothing is remembered between calls.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple

from planner_engine.clock import ZonedClock
from planner_engine.models import DAYS_IN_WEEK
from planner_engine.models import MINUTE_MS
from planner_engine.models import DragKind
from planner_engine.models import DragState
from planner_engine.models import WeekWindow
from planner_engine.week import WeekConvention
from planner_engine.week import add_calendar_days
from planner_engine.week import week_end as compute_week_end


class Pointer(NamedTuple):
    x: float
    y: float


class ContainerBounds(NamedTuple):
    """Bounding box of the calendar surface; only ``width`` is read."""

    width: float
    height: float = 0.0


class Candidate(NamedTuple):
    """The ``(id, start, end)`` tuple handed to a commit callback."""

    id: str
    start: int
    end: int


@dataclass(frozen=True)
class DragGeometry:
    row_height_px: float = 56
    snap_minutes: int = 15
    min_duration_minutes: int = 15

    @property
    def px_per_minute(self) -> float:
        return self.row_height_px / 60

    @property
    def min_duration_ms(self) -> int:
        return self.min_duration_minutes * MINUTE_MS


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _steps(value: float) -> int:
    """Nearest whole step; NaN and infinite travel count as no travel."""
    if not math.isfinite(value):
        return 0
    return _round_half_up(value)


def snap_minutes(delta_y: float, geometry: DragGeometry = DragGeometry()) -> int:
    """Vertical pointer travel as minutes, rounded to the nearest increment."""
    if geometry.px_per_minute <= 0 or geometry.snap_minutes <= 0:
        return 0
    raw_minutes = delta_y / geometry.px_per_minute
    return _steps(raw_minutes / geometry.snap_minutes) * geometry.snap_minutes


def day_offset(delta_x: float, width: float) -> int:
    """Horizontal pointer travel as whole day columns."""
    if not width > 0:
        return 0
    return _steps(delta_x / (width / DAYS_IN_WEEK))


def compute_event_position(
    pointer: Pointer,
    drag: DragState,
    bounds: ContainerBounds,
    week: WeekWindow | int,
    *,
    geometry: DragGeometry = DragGeometry(),
    zone: str | None = None,
    clock: ZonedClock | None = None,
    convention: WeekConvention | str | None = None,
) -> Candidate:
    """New interval for ``drag`` given the current pointer position.

    move
        Vertical travel shifts the time of day, horizontal travel shifts whole
        calendar days; duration is preserved and the interval is kept inside
        the week.
    resize-start / resize-end
        Only the grabbed edge moves; it stays inside the week and never
        brings the interval below the minimum duration.  The minimum
        duration wins when both cannot hold, so an already-short event at
        the very edge of the week may reach past that edge.

    ``week`` is the visible WeekWindow, whose own end, zone and convention
    are used.  A bare ``week_start`` instant is also accepted; its end is
    then derived from ``zone`` (default UTC) and ``convention``.
    """
    if isinstance(week, WeekWindow):
        week_start, week_end = week.start, week.end
        zone = zone or week.zone
        clock = clock or ZonedClock(default_zone=zone)
    else:
        week_start = week
        zone = zone or "UTC"
        clock = clock or ZonedClock(default_zone=zone)
        week_end = compute_week_end(
            week_start, zone, clock, convention or WeekConvention.CALENDAR
        )
    minute_ms_delta = snap_minutes(pointer.y - drag.origin_y, geometry) * MINUTE_MS
    min_duration = geometry.min_duration_ms
    kind = DragKind(drag.kind)

    if kind is DragKind.MOVE:
        duration = drag.end - drag.start
        days = day_offset(pointer.x - drag.origin_x, bounds.width)
        # anything further than a week is pinned by the clamps below
        days = max(-DAYS_IN_WEEK, min(DAYS_IN_WEEK, days))
        start = add_calendar_days(drag.start, days, zone, clock) + minute_ms_delta
        if start < week_start:
            start = week_start
        if start + duration > week_end:
            start = week_end - duration
        # longer than the whole week: pin to the window
        start = max(start, week_start)
        end = min(start + duration, week_end)
        return Candidate(drag.id, start, end)

    if kind is DragKind.RESIZE_START:
        start = drag.start + minute_ms_delta
        if start < week_start:
            start = week_start
        if start > drag.end - min_duration:
            start = drag.end - min_duration
        return Candidate(drag.id, start, drag.end)

    end = drag.end + minute_ms_delta
    if end > week_end:
        end = week_end
    if end < drag.start + min_duration:
        end = drag.start + min_duration
    return Candidate(drag.id, drag.start, end)
