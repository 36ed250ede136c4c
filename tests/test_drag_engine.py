"""
Unit tests for compute_event_position: snapping, day moves, clamping to the
week and the minimum-duration floor.
"""

from datetime import date

from planner_engine.clock import instant_to_iso
from planner_engine.drag import ContainerBounds
from planner_engine.drag import DragGeometry
from planner_engine.drag import Pointer
from planner_engine.drag import compute_event_position
from planner_engine.drag.engine import _round_half_up
from planner_engine.drag.engine import day_offset
from planner_engine.drag.engine import snap_minutes
from planner_engine.models import DragKind
from planner_engine.models import DragState
from planner_engine.week import compute_week_range
from tests.conftest import COLUMN_WIDTH
from tests.conftest import WEEK_START
from tests.conftest import WIDTH
from tests.conftest import iso

BOUNDS = ContainerBounds(WIDTH)


def _drag(kind, start, end, origin_x=0, origin_y=0, event_id="task") -> DragState:
    return DragState(
        id=event_id,
        kind=DragKind(kind),
        origin_x=origin_x,
        origin_y=origin_y,
        start=iso(start),
        end=iso(end),
    )


def _iso_pair(candidate):
    return instant_to_iso(candidate.start), instant_to_iso(candidate.end)


# ---------------------------------------------------------------------------
# TestSnapping
# ---------------------------------------------------------------------------


class TestSnapping:
    def test_one_hour_row(self):
        assert snap_minutes(56) == 60

    def test_rounds_to_nearest_increment(self):
        assert snap_minutes(6) == 0
        assert snap_minutes(8) == 15
        assert snap_minutes(10) == 15
        assert snap_minutes(-6) == 0
        assert snap_minutes(-10) == -15

    def test_halves_round_toward_positive_infinity(self):
        assert _round_half_up(0.5) == 1
        assert _round_half_up(2.5) == 3
        assert _round_half_up(-0.5) == 0
        assert _round_half_up(-1.5) == -1

    def test_custom_geometry(self):
        geometry = DragGeometry(row_height_px=120, snap_minutes=30)
        assert snap_minutes(50, geometry) == 30

    def test_day_offset_rounds_to_nearest_column(self):
        assert day_offset(COLUMN_WIDTH * 0.49, WIDTH) == 0
        assert day_offset(COLUMN_WIDTH * 0.51, WIDTH) == 1
        assert day_offset(-COLUMN_WIDTH * 2, WIDTH) == -2

    def test_zero_width_never_moves_days(self):
        assert day_offset(500, 0) == 0

    def test_non_finite_travel_counts_as_none(self):
        assert snap_minutes(float("nan")) == 0
        assert snap_minutes(float("inf")) == 0
        assert day_offset(float("nan"), WIDTH) == 0
        assert day_offset(float("-inf"), WIDTH) == 0
        assert day_offset(100, float("nan")) == 0


# ---------------------------------------------------------------------------
# TestMove
# ---------------------------------------------------------------------------


class TestMove:
    def test_vertical_snap(self):
        drag = _drag("move", "2024-04-01T09:00:00Z", "2024-04-01T10:00:00Z", origin_y=100)
        result = compute_event_position(Pointer(0, 156), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-01T10:00:00.000Z", "2024-04-01T11:00:00.000Z")
        assert result.id == "task"

    def test_horizontal_move_to_next_day(self):
        drag = _drag(
            "move", "2024-04-02T14:00:00Z", "2024-04-02T15:30:00Z", origin_x=200, origin_y=50
        )
        result = compute_event_position(
            Pointer(200 + COLUMN_WIDTH, 50), drag, BOUNDS, WEEK_START
        )
        assert _iso_pair(result) == ("2024-04-03T14:00:00.000Z", "2024-04-03T15:30:00.000Z")

    def test_clamped_to_week_start(self):
        drag = _drag("move", "2024-04-01T00:30:00Z", "2024-04-01T01:30:00Z")
        result = compute_event_position(Pointer(0, -112), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-01T00:00:00.000Z", "2024-04-01T01:00:00.000Z")

    def test_clamped_to_week_end(self):
        drag = _drag("move", "2024-04-07T22:00:00Z", "2024-04-07T23:30:00Z")
        result = compute_event_position(Pointer(COLUMN_WIDTH, 0), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-07T22:30:00.000Z", "2024-04-08T00:00:00.000Z")

    def test_dragged_far_left_stays_in_week(self):
        drag = _drag("move", "2024-04-03T10:00:00Z", "2024-04-03T11:00:00Z")
        result = compute_event_position(Pointer(-WIDTH * 3, 0), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-01T00:00:00.000Z", "2024-04-01T01:00:00.000Z")

    def test_day_move_across_dst_keeps_local_time(self, clock):
        """Saturday 09:00 PST moved one column lands on Sunday 09:00 PDT."""
        zone = "America/Los_Angeles"
        week = compute_week_range(date(2024, 3, 10), zone, clock)
        drag = _drag("move", "2024-03-09T17:00:00Z", "2024-03-09T18:00:00Z")
        result = compute_event_position(
            Pointer(COLUMN_WIDTH, 0), drag, BOUNDS, week.start, zone=zone, clock=clock
        )
        assert _iso_pair(result) == ("2024-03-10T16:00:00.000Z", "2024-03-10T17:00:00.000Z")

    def test_fixed_convention_week(self, clock):
        """A fixed week ends 168h after its start; day moves are unchanged in UTC."""
        drag = _drag("move", "2024-04-02T14:00:00Z", "2024-04-02T15:30:00Z")
        result = compute_event_position(
            Pointer(COLUMN_WIDTH * 2, 0), drag, BOUNDS, WEEK_START, convention="fixed"
        )
        assert _iso_pair(result) == ("2024-04-04T14:00:00.000Z", "2024-04-04T15:30:00.000Z")

    def test_nan_pointer_leaves_event_in_place(self):
        drag = _drag("move", "2024-04-02T14:00:00Z", "2024-04-02T15:30:00Z")
        result = compute_event_position(
            Pointer(float("nan"), float("nan")), drag, BOUNDS, WEEK_START
        )
        assert _iso_pair(result) == ("2024-04-02T14:00:00.000Z", "2024-04-02T15:30:00.000Z")

    def test_very_far_pointer_is_pinned_to_week(self):
        drag = _drag("move", "2024-04-02T14:00:00Z", "2024-04-02T15:30:00Z")
        right = compute_event_position(Pointer(1e11, 0), drag, BOUNDS, WEEK_START)
        assert _iso_pair(right) == ("2024-04-07T22:30:00.000Z", "2024-04-08T00:00:00.000Z")
        left = compute_event_position(Pointer(-1e11, 0), drag, BOUNDS, WEEK_START)
        assert _iso_pair(left) == ("2024-04-01T00:00:00.000Z", "2024-04-01T01:30:00.000Z")

    def test_pure(self):
        drag = _drag("move", "2024-04-02T14:00:00Z", "2024-04-02T15:30:00Z")
        first = compute_event_position(Pointer(130, 40), drag, BOUNDS, WEEK_START)
        second = compute_event_position(Pointer(130, 40), drag, BOUNDS, WEEK_START)
        assert first == second
        assert drag.start == iso("2024-04-02T14:00:00Z")


# ---------------------------------------------------------------------------
# TestResize
# ---------------------------------------------------------------------------


class TestResize:
    def test_resize_start(self):
        drag = _drag("resize-start", "2024-04-04T09:00:00Z", "2024-04-04T10:30:00Z")
        result = compute_event_position(Pointer(0, 28), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-04T09:30:00.000Z", "2024-04-04T10:30:00.000Z")

    def test_resize_start_floor(self):
        drag = _drag("resize-start", "2024-04-04T09:00:00Z", "2024-04-04T10:30:00Z")
        result = compute_event_position(Pointer(0, 500), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-04T10:15:00.000Z", "2024-04-04T10:30:00.000Z")

    def test_resize_start_clamped_to_week_start(self):
        drag = _drag("resize-start", "2024-04-01T01:00:00Z", "2024-04-01T02:00:00Z")
        result = compute_event_position(Pointer(0, -300), drag, BOUNDS, WEEK_START)
        assert instant_to_iso(result.start) == "2024-04-01T00:00:00.000Z"

    def test_resize_start_ignores_horizontal_travel(self):
        drag = _drag("resize-start", "2024-04-04T09:00:00Z", "2024-04-04T10:30:00Z")
        result = compute_event_position(Pointer(WIDTH, 0), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-04T09:00:00.000Z", "2024-04-04T10:30:00.000Z")

    def test_resize_end_floor(self):
        drag = _drag("resize-end", "2024-04-05T12:00:00Z", "2024-04-05T13:00:00Z")
        result = compute_event_position(Pointer(0, -200), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-05T12:00:00.000Z", "2024-04-05T12:15:00.000Z")

    def test_resize_end_clamped_to_week_end(self):
        drag = _drag("resize-end", "2024-04-07T23:00:00Z", "2024-04-07T23:30:00Z")
        result = compute_event_position(Pointer(0, 56), drag, BOUNDS, WEEK_START)
        assert instant_to_iso(result.end) == "2024-04-08T00:00:00.000Z"

    def test_resize_end_grows(self):
        drag = _drag("resize-end", "2024-04-05T12:00:00Z", "2024-04-05T13:00:00Z")
        result = compute_event_position(Pointer(0, 42), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-05T12:00:00.000Z", "2024-04-05T13:45:00.000Z")

    def test_minimum_duration_wins_over_week_start(self):
        """A 10-minute event at the start of the week grows backwards past it."""
        drag = _drag("resize-start", "2024-04-01T00:00:00Z", "2024-04-01T00:10:00Z")
        result = compute_event_position(Pointer(0, 0), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-03-31T23:55:00.000Z", "2024-04-01T00:10:00.000Z")

    def test_minimum_duration_wins_over_week_end(self):
        drag = _drag("resize-end", "2024-04-07T23:55:00Z", "2024-04-08T00:00:00Z")
        result = compute_event_position(Pointer(0, 56), drag, BOUNDS, WEEK_START)
        assert _iso_pair(result) == ("2024-04-07T23:55:00.000Z", "2024-04-08T00:10:00.000Z")


# ---------------------------------------------------------------------------
# TestWeekWindowInput
# ---------------------------------------------------------------------------


class TestWeekWindowInput:
    def test_window_end_and_zone_are_used(self, clock):
        """The spring-forward week in Los Angeles ends at 07:00Z, not 08:00Z."""
        week = compute_week_range(date(2024, 3, 10), "America/Los_Angeles", clock)
        drag = _drag("resize-end", "2024-03-11T05:00:00Z", "2024-03-11T06:00:00Z")
        result = compute_event_position(Pointer(0, 300), drag, BOUNDS, week)
        assert instant_to_iso(result.end) == "2024-03-11T07:00:00.000Z"

    def test_day_move_uses_window_zone(self):
        week = compute_week_range(date(2024, 3, 10), "America/Los_Angeles")
        drag = _drag("move", "2024-03-09T17:00:00Z", "2024-03-09T18:00:00Z")
        result = compute_event_position(Pointer(COLUMN_WIDTH, 0), drag, BOUNDS, week)
        assert _iso_pair(result) == ("2024-03-10T16:00:00.000Z", "2024-03-10T17:00:00.000Z")

    def test_fixed_window(self, clock):
        week = compute_week_range(date(2024, 3, 10), "America/Los_Angeles", clock, "fixed")
        drag = _drag("resize-end", "2024-03-11T05:00:00Z", "2024-03-11T06:00:00Z")
        result = compute_event_position(Pointer(0, 300), drag, BOUNDS, week)
        assert instant_to_iso(result.end) == "2024-03-11T08:00:00.000Z"
