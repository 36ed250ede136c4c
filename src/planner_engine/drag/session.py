"""
Drag gesture lifecycle expressed as explicit state values.

The caller owns the DragState captured at pointer-down and passes it back on
every pointer-move and on pointer-up.  Nothing here keeps a "current drag".
"""

import logging
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace

from planner_engine.conflicts import detect_conflicts
from planner_engine.drag.engine import Candidate
from planner_engine.drag.engine import ContainerBounds
from planner_engine.drag.engine import Pointer
from planner_engine.drag.engine import compute_event_position
from planner_engine.models import CalendarEvent
from planner_engine.models import DragKind
from planner_engine.models import DragState
from planner_engine.models import WeekWindow

_logger = logging.getLogger(__name__)

CommitFn = Callable[[Candidate], None]


def begin_drag(event: CalendarEvent, kind: DragKind | str, pointer: Pointer) -> DragState:
    """Capture the gesture snapshot at pointer-down."""
    return DragState(
        id=event.id,
        kind=DragKind(kind),
        origin_x=pointer.x,
        origin_y=pointer.y,
        start=event.start,
        end=event.end,
    )


def preview_drag(
    drag: DragState,
    pointer: Pointer,
    bounds: ContainerBounds,
    week: WeekWindow | int,
    **options,
) -> Candidate:
    """Live candidate for a pointer-move sample."""
    return compute_event_position(pointer, drag, bounds, week, **options)


def apply_preview(events: Iterable[CalendarEvent], candidate: Candidate | None):
    """Display list with the dragged event shown at its candidate interval."""
    if candidate is None:
        return list(events)
    return [
        replace(event, start=candidate.start, end=candidate.end)
        if event.id == candidate.id
        else event
        for event in events
    ]


class PendingChange:
    """A dropped interval waiting for the user to confirm or cancel.

    Whichever of confirm()/cancel() completes first settles the change; later
    calls do nothing and return False.  A commit callback that raises leaves
    the change unsettled, so it can be confirmed again or cancelled.
    """

    def __init__(self, candidate: Candidate, conflicts: list[CalendarEvent], commit: CommitFn):
        self.candidate = candidate
        self.conflicts = conflicts
        self._commit = commit
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def confirm(self) -> bool:
        if self._settled:
            return False
        _logger.debug("Conflict override confirmed for %s", self.candidate.id)
        self._commit(self.candidate)
        self._settled = True
        return True

    def cancel(self) -> bool:
        if self._settled:
            return False
        self._settled = True
        _logger.debug("Conflicting change to %s cancelled", self.candidate.id)
        return True


@dataclass(frozen=True)
class DropResult:
    """Outcome of pointer-up: committed immediately, or pending confirmation."""

    candidate: Candidate
    conflicts: list[CalendarEvent] = field(default_factory=list)
    pending: PendingChange | None = None

    @property
    def committed(self) -> bool:
        return self.pending is None


def finish_drag(
    drag: DragState,
    pointer: Pointer,
    bounds: ContainerBounds,
    week: WeekWindow | int,
    events: Iterable[CalendarEvent],
    commit: CommitFn,
    **options,
) -> DropResult:
    """Compute the final interval and commit it unless it overlaps others."""
    candidate = compute_event_position(pointer, drag, bounds, week, **options)
    conflicts = detect_conflicts(events, candidate)
    if conflicts:
        _logger.debug(
            "Deferring %s: overlaps %s", candidate.id, ", ".join(e.id for e in conflicts)
        )
        return DropResult(candidate, conflicts, PendingChange(candidate, conflicts, commit))

    _logger.debug("Committing %s: %d..%d", candidate.id, candidate.start, candidate.end)
    commit(candidate)
    return DropResult(candidate)
