"""
Boundary between persisted task records and planner events.
"""

import logging
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any

from planner_engine.clock import instant_to_iso
from planner_engine.clock import parse_instant
from planner_engine.conflicts import Interval
from planner_engine.conflicts import minutes_between
from planner_engine.models import MINUTE_MS
from planner_engine.models import CalendarEvent

_logger = logging.getLogger(__name__)

MIN_COMMIT_DURATION_MINUTES = 15


def event_from_record(record: Mapping[str, Any]) -> CalendarEvent | None:
    """Build an event from a task record, or None if it is not on the calendar."""
    scheduled = record.get("scheduled_time")
    if not scheduled:
        return None
    duration = int(record.get("duration_minutes") or 0)
    if duration <= 0:
        _logger.warning(
            "Skipping record %s: non-positive duration %s", record.get("id"), duration
        )
        return None
    start = parse_instant(scheduled)
    return CalendarEvent(
        id=str(record["id"]),
        title=record.get("title") or "",
        start=start,
        end=start + duration * MINUTE_MS,
        metadata={"record": dict(record)},
    )


def events_from_records(records: Iterable[Mapping[str, Any]]) -> list[CalendarEvent]:
    events = []
    for record in records:
        event = event_from_record(record)
        if event is not None:
            events.append(event)
    return events


def build_commit_payload(candidate: Interval) -> dict[str, Any]:
    """Persistence request for a committed interval (UTC start + minutes)."""
    return {
        "id": candidate.id,
        "scheduled_time": instant_to_iso(candidate.start),
        "duration_minutes": max(
            MIN_COMMIT_DURATION_MINUTES, minutes_between(candidate.start, candidate.end)
        ),
    }
