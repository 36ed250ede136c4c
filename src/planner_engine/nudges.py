"""
Daily nudge times and their expansion into planner events for one week.

Every editing helper returns a new, time-sorted list; inputs are never
mutated.
"""

import re
from dataclasses import dataclass
from dataclasses import replace

from planner_engine.clock import PlainWallClock
from planner_engine.clock import ZonedClock
from planner_engine.models import DAYS_IN_WEEK
from planner_engine.models import MINUTE_MS
from planner_engine.models import CalendarEvent
from planner_engine.models import NudgeScheduleError
from planner_engine.week import compute_week_range

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

MAX_NUDGES_PER_DAY = 12
DEFAULT_DURATION_MINUTES = 10


@dataclass(frozen=True)
class NudgeEntry:
    time: str  # HH:MM, local
    enabled: bool = True


def _validate_time(time: str) -> str:
    if not isinstance(time, str) or not _TIME_RE.match(time):
        raise NudgeScheduleError("Enter time as HH:MM")
    return time


def add_nudge_time(schedule: list[NudgeEntry], time: str) -> list[NudgeEntry]:
    time = _validate_time(time)
    if any(entry.time == time for entry in schedule):
        raise NudgeScheduleError("That time is already scheduled.")
    if len(schedule) >= MAX_NUDGES_PER_DAY:
        raise NudgeScheduleError(f"Choose up to {MAX_NUDGES_PER_DAY} nudges per day.")
    return sorted([*schedule, NudgeEntry(time)], key=lambda entry: entry.time)


def toggle_nudge_time(
    schedule: list[NudgeEntry], time: str, value: bool | None = None
) -> list[NudgeEntry]:
    """Flip (or force to ``value``) the enabled flag of one entry."""
    if not any(entry.time == time for entry in schedule):
        raise NudgeScheduleError("Scheduled time not found.")
    return [
        replace(entry, enabled=(not entry.enabled) if value is None else value)
        if entry.time == time
        else entry
        for entry in schedule
    ]


def remove_nudge_time(schedule: list[NudgeEntry], time: str) -> list[NudgeEntry]:
    """Drop one entry; a time that is not scheduled leaves a plain copy."""
    time = _validate_time(time)
    return sorted(
        (entry for entry in schedule if entry.time != time), key=lambda entry: entry.time
    )


def build_nudge_events(
    schedule: list[NudgeEntry],
    anchor,
    zone: str = "UTC",
    clock: ZonedClock | None = None,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
    title: str = "Nudge",
    id_prefix: str = "nudge",
) -> list[CalendarEvent]:
    """One event per enabled time per day of the anchor's week."""
    enabled = [entry for entry in schedule if entry.enabled]
    if not enabled:
        return []

    clock = clock or ZonedClock(default_zone=zone)
    window = compute_week_range(anchor, zone, clock)
    monday = clock.instant_to_wall_clock(window.start, zone).wall
    duration_ms = max(1, duration_minutes) * MINUTE_MS

    events = []
    for entry in enabled:
        hours, minutes = (int(part) for part in _validate_time(entry.time).split(":"))
        for offset in range(DAYS_IN_WEEK):
            local: PlainWallClock = monday.plus_days(offset).at(hours, minutes)
            start = clock.wall_clock_to_instant(local, zone)
            events.append(
                CalendarEvent(
                    id=f"{id_prefix}-{entry.time}-{offset}",
                    title=title,
                    start=start,
                    end=start + duration_ms,
                    metadata={"kind": "nudge", "time": entry.time},
                )
            )
    return events
