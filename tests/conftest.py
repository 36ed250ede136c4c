"""
Shared pytest fixtures and event helpers.
"""

import json

import pytest

from planner_engine.clock import ZonedClock
from planner_engine.clock import parse_instant
from planner_engine.models import CalendarEvent

# Monday 2024-04-01, the week used by the drag tests.
WEEK_START = parse_instant("2024-04-01T00:00:00Z")
WIDTH = 700
COLUMN_WIDTH = WIDTH / 7


def iso(text: str) -> int:
    """Epoch ms of an ISO-8601 instant string."""
    return parse_instant(text)


def make_event(event_id: str, start: str, end: str, title: str = "Test Event") -> CalendarEvent:
    """Return a CalendarEvent from two ISO-8601 instant strings."""
    return CalendarEvent(id=event_id, title=title, start=iso(start), end=iso(end))


def make_record(
    record_id: str,
    scheduled_time: str | None,
    duration_minutes: int = 60,
    title: str = "Task",
) -> dict:
    """Return a persisted task record as the backend delivers it."""
    return {
        "id": record_id,
        "title": title,
        "scheduled_time": scheduled_time,
        "duration_minutes": duration_minutes,
    }


@pytest.fixture
def clock():
    return ZonedClock()


@pytest.fixture
def overlapping_pair():
    """Two back-to-back events with a 15-minute gap between them."""
    return [
        make_event("a", "2024-05-01T16:00:00Z", "2024-05-01T17:00:00Z", "Deep Work"),
        make_event("b", "2024-05-01T17:15:00Z", "2024-05-01T18:00:00Z", "One-on-one"),
    ]


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(
        json.dumps(
            [
                make_record("a", "2024-05-01T16:00:00.000Z", 60, "Deep Work"),
                make_record("b", "2024-05-01T17:15:00.000Z", 45, "One-on-one"),
                make_record("c", None, 30, "Someday"),
            ]
        )
    )
    return path
