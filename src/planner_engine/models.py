"""
Pure data models; no zone database or locale imports.
"""

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any

DEFAULT_CONFIG = Path.home() / ".config/planner-engine.conf"

MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
DAYS_IN_WEEK = 7


class PlannerError(Exception):
    """Base exception for planner engine errors."""

    pass


class InvalidTimeZoneError(PlannerError):
    """The zone id is not known to the zone database (configuration error)."""

    pass


class InvalidLocaleError(PlannerError):
    """The locale identifier is not known to the locale database."""

    pass


class WallClockParseError(PlannerError, ValueError):
    """Malformed wall-clock or ISO-8601 input."""

    pass


class AmbiguousTimeError(PlannerError):
    """A wall-clock time occurs twice in the zone and the policy is 'reject'."""

    pass


class NonexistentTimeError(PlannerError):
    """A wall-clock time is skipped by the zone and the policy is 'reject'."""

    pass


class InvalidEventError(PlannerError, ValueError):
    """An event interval is empty or inverted."""

    pass


class DragInProgressError(PlannerError):
    """A surface already has an active drag gesture."""

    pass


class NudgeScheduleError(PlannerError):
    """Invalid edit of a daily nudge schedule."""

    pass


class DragKind(str, Enum):
    """Which edge of an event a gesture is manipulating."""

    MOVE = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"


@dataclass(frozen=True)
class CalendarEvent:
    """A scheduled entry on the planner surface.

    ``start`` and ``end`` are epoch milliseconds; ``start < end`` strictly.
    """

    id: str
    title: str
    start: int
    end: int
    metadata: dict[str, Any] | None = field(default=None, compare=False)

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidEventError(
                f"Event {self.id!r} must end after it starts ({self.start} >= {self.end})"
            )

    @property
    def duration_ms(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class DragState:
    """Snapshot captured once at pointer-down; never mutated during the gesture."""

    id: str
    kind: DragKind
    origin_x: float
    origin_y: float
    start: int
    end: int


@dataclass(frozen=True)
class WeekWindow:
    """Monday-anchored local week: [start, end) in epoch milliseconds."""

    start: int
    end: int
    zone: str = "UTC"
    convention: str = "calendar"  # 'calendar', 'fixed'

    def contains(self, instant: int) -> bool:
        return self.start <= instant < self.end

    @property
    def duration_ms(self) -> int:
        return self.end - self.start


@dataclass
class PlannerConfig:
    """Configuration for a planner surface."""

    time_zone: str = "UTC"
    locale: str = "en-US"
    row_height_px: float = 56
    snap_minutes: int = 15
    min_duration_minutes: int = 15
    week_convention: str = "calendar"  # 'calendar', 'fixed'
