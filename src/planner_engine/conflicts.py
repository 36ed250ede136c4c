"""
Stateless interval helpers: overlap detection and minute arithmetic.
"""

from collections.abc import Iterable
from typing import Protocol

from planner_engine.models import MINUTE_MS
from planner_engine.models import CalendarEvent


class Interval(Protocol):
    id: str
    start: int
    end: int


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap test; touching boundaries do not overlap."""
    return a_start < b_end and b_start < a_end


def detect_conflicts(events: Iterable[CalendarEvent], candidate: Interval) -> list[CalendarEvent]:
    """Return every event overlapping ``candidate``, in input order.

    The event sharing ``candidate.id`` (the one being moved) is never
    reported against itself.
    """
    return [
        event
        for event in events
        if event.id != candidate.id
        and overlaps(event.start, event.end, candidate.start, candidate.end)
    ]


def minutes_between(start: int, end: int) -> int:
    """Whole minutes from ``start`` to ``end``, rounded, never negative."""
    # half-up so 44m30s reads as 45
    return max(0, (end - start + MINUTE_MS // 2) // MINUTE_MS)
