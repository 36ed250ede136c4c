"""
Drag gestures on a planner surface.

PlannerSurface keeps the visible week and the active drag; the arithmetic
lives in the pure functions of ``engine`` and ``session``.
"""

import logging

from planner_engine.clock import ZonedClock
from planner_engine.drag.engine import Candidate
from planner_engine.drag.engine import ContainerBounds
from planner_engine.drag.engine import DragGeometry
from planner_engine.drag.engine import Pointer
from planner_engine.drag.engine import compute_event_position
from planner_engine.drag.session import CommitFn
from planner_engine.drag.session import DropResult
from planner_engine.drag.session import PendingChange
from planner_engine.drag.session import apply_preview
from planner_engine.drag.session import begin_drag
from planner_engine.drag.session import finish_drag
from planner_engine.drag.session import preview_drag
from planner_engine.models import CalendarEvent
from planner_engine.models import DragInProgressError
from planner_engine.models import DragKind
from planner_engine.models import DragState
from planner_engine.models import PlannerConfig
from planner_engine.models import WeekWindow
from planner_engine.week import WeekConvention
from planner_engine.week import compute_week_range
from planner_engine.week import shift_week

__all__ = [
    "Candidate",
    "ContainerBounds",
    "DragGeometry",
    "DropResult",
    "PendingChange",
    "PlannerSurface",
    "Pointer",
    "apply_preview",
    "begin_drag",
    "compute_event_position",
    "finish_drag",
    "preview_drag",
]


class PlannerSurface:
    """One calendar surface: the visible week and at most one active drag."""

    def __init__(self, config: PlannerConfig, anchor=None, clock: ZonedClock | None = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.clock = clock or ZonedClock(default_zone=config.time_zone, locale=config.locale)
        self.geometry = DragGeometry(
            row_height_px=config.row_height_px,
            snap_minutes=config.snap_minutes,
            min_duration_minutes=config.min_duration_minutes,
        )
        self.convention = WeekConvention(config.week_convention)
        if anchor is None:
            anchor = self.clock.now(config.time_zone)
        self.window = compute_week_range(anchor, config.time_zone, self.clock, self.convention)
        self.drag: DragState | None = None

    def _options(self) -> dict:
        return {
            "geometry": self.geometry,
            "zone": self.config.time_zone,
            "clock": self.clock,
        }

    # -- navigation ----------------------------------------------------------

    def navigate(self, weeks: int) -> WeekWindow:
        """Move the visible window by ``weeks`` (negative for earlier)."""
        self.window = shift_week(self.window, weeks, self.clock)
        return self.window

    def go_to(self, anchor) -> WeekWindow:
        self.window = compute_week_range(
            anchor, self.config.time_zone, self.clock, self.convention
        )
        return self.window

    # -- gesture -------------------------------------------------------------

    def begin(self, event: CalendarEvent, kind: DragKind | str, pointer: Pointer) -> DragState:
        if self.drag is not None:
            raise DragInProgressError(f"Already dragging {self.drag.id!r}")
        self.drag = begin_drag(event, kind, pointer)
        self.logger.debug("Drag started: %s %s", self.drag.kind.value, self.drag.id)
        return self.drag

    def move(self, pointer: Pointer, bounds: ContainerBounds) -> Candidate | None:
        if self.drag is None:
            return None
        return preview_drag(self.drag, pointer, bounds, self.window, **self._options())

    def drop(
        self,
        pointer: Pointer,
        bounds: ContainerBounds,
        events: list[CalendarEvent],
        commit: CommitFn,
    ) -> DropResult | None:
        if self.drag is None:
            return None
        drag, self.drag = self.drag, None
        return finish_drag(
            drag, pointer, bounds, self.window, events, commit, **self._options()
        )

    def cancel(self) -> bool:
        """Abandon the active drag; safe to call when nothing is active."""
        if self.drag is None:
            return False
        self.logger.debug("Drag cancelled: %s", self.drag.id)
        self.drag = None
        return True
