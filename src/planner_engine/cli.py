"""
Command-line interface for the planner engine.
"""

import json
import logging
from collections.abc import Iterator
from configparser import ConfigParser
from contextlib import contextmanager
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from planner_engine.clock import Disambiguation
from planner_engine.clock import PlainWallClock
from planner_engine.clock import ZonedClock
from planner_engine.clock import instant_to_iso
from planner_engine.conflicts import detect_conflicts
from planner_engine.drag import Candidate
from planner_engine.drag import ContainerBounds
from planner_engine.drag import PlannerSurface
from planner_engine.drag import Pointer
from planner_engine.models import DEFAULT_CONFIG
from planner_engine.models import CalendarEvent
from planner_engine.models import DragKind
from planner_engine.models import PlannerConfig
from planner_engine.models import PlannerError
from planner_engine.nudges import add_nudge_time
from planner_engine.nudges import build_nudge_events
from planner_engine.records import build_commit_payload
from planner_engine.records import events_from_records
from planner_engine.week import WeekConvention
from planner_engine.week import compute_week_range
from planner_engine.week import day_starts
from planner_engine.week import shift_week

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Timezone-correct week planner: conversions, week windows, conflicts and drags.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    zone: str | None = None
    locale: str | None = None
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    zone: Annotated[
        str | None,
        typer.Option("--zone", "-z", help="IANA time zone (overrides config)"),
    ] = None,
    locale: Annotated[
        str | None,
        typer.Option("--locale", "-l", help="Display locale, e.g. fr-FR (overrides config)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.zone = zone
    state.locale = locale
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser()
    parser.read(config_path)
    if "planner" not in parser:
        return {}
    return dict(parser["planner"])


def _build_config() -> PlannerConfig:
    config_file = _load_config_file(state.config_path)
    defaults = PlannerConfig()
    try:
        return PlannerConfig(
            time_zone=state.zone or config_file.get("time_zone", defaults.time_zone),
            locale=state.locale or config_file.get("locale", defaults.locale),
            row_height_px=float(config_file.get("row_height_px", defaults.row_height_px)),
            snap_minutes=int(config_file.get("snap_minutes", defaults.snap_minutes)),
            min_duration_minutes=int(
                config_file.get("min_duration_minutes", defaults.min_duration_minutes)
            ),
            week_convention=WeekConvention(
                config_file.get("week_convention", defaults.week_convention)
            ).value,
        )
    except ValueError as e:
        console.print(f"[bold red]Error:[/] Invalid config in {state.config_path}: {e}")
        raise typer.Exit(1) from None


@contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except (PlannerError, ValueError) as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None


def _load_events(path: Path) -> list[CalendarEvent]:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[bold red]Error:[/] Cannot read events from {path}: {e}")
        raise typer.Exit(1) from None
    if isinstance(data, dict):
        data = data.get("items", [])
    try:
        return events_from_records(data)
    except (PlannerError, KeyError) as e:
        console.print(f"[bold red]Error:[/] Invalid task record in {path}: {e}")
        raise typer.Exit(1) from None


def _event_table(events: list[CalendarEvent], clock: ZonedClock, zone: str, title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold")
    table.add_column("Title")
    table.add_column("Day")
    table.add_column("Time")
    for event in events:
        table.add_row(
            event.id,
            event.title,
            clock.format(event.start, zone=zone, date_style="medium", time_style=None),
            clock.format_range(event.start, event.end, zone=zone),
        )
    return table


def _anchor(clock: ZonedClock, zone: str, anchor: str | None):
    if anchor is None:
        return clock.now(zone)
    return PlainWallClock.parse(anchor)


# ---------------------------------------------------------------------------
# Subcommands: conversions
# ---------------------------------------------------------------------------


@app.command()
def convert(
    wall_clock: Annotated[str, typer.Argument(help="Local time, e.g. 2024-03-10T01:30")],
    disambiguation: Annotated[
        Disambiguation,
        typer.Option(help="Policy for repeated or skipped local times"),
    ] = Disambiguation.COMPATIBLE,
) -> None:
    """Resolve a wall-clock reading in the zone to an absolute instant."""
    cfg = _build_config()
    clock = ZonedClock(default_zone=cfg.time_zone, locale=cfg.locale)
    with _reporting_errors():
        zoned = clock.from_wall_clock(
            PlainWallClock.parse(wall_clock), cfg.time_zone, disambiguation
        )

    info = Text()
    info.append("  Zone:     ", style="bold")
    info.append(f"{cfg.time_zone}\n")
    info.append("  Instant:  ", style="bold")
    info.append(f"{instant_to_iso(zoned.epoch_ms)}\n")
    info.append("  Zoned:    ", style="bold")
    info.append(str(zoned))
    console.print(Panel(info, title="[bold]Wall clock → instant[/bold]", expand=False))


@app.command()
def show(
    value: Annotated[str, typer.Argument(help="ISO instant or zoned string")],
    date_style: Annotated[str, typer.Option(help="full, long, medium or short")] = "long",
    time_style: Annotated[str, typer.Option(help="full, long, medium or short")] = "short",
) -> None:
    """Render an instant as local wall-clock time and locale text."""
    cfg = _build_config()
    clock = ZonedClock(default_zone=cfg.time_zone, locale=cfg.locale)
    with _reporting_errors():
        zoned = clock.parse(value, cfg.time_zone)
        text = zoned.format(cfg.locale, date_style=date_style, time_style=time_style)

    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column()
    results.add_row("Zoned", str(zoned))
    results.add_row("Offset (min)", str(zoned.offset_minutes))
    results.add_row("Instant", instant_to_iso(zoned.epoch_ms))
    results.add_row(cfg.locale, text)
    console.print(Panel(results, title="[bold]Instant → wall clock[/bold]", expand=False))


# ---------------------------------------------------------------------------
# Subcommands: planner
# ---------------------------------------------------------------------------


@app.command()
def week(
    anchor: Annotated[
        str | None, typer.Argument(help="Any date in the week, YYYY-MM-DD (default: today)")
    ] = None,
    offset: Annotated[int, typer.Option("--offset", help="Weeks to move from the anchor")] = 0,
) -> None:
    """Show the Monday-anchored week window and its day columns."""
    cfg = _build_config()
    clock = ZonedClock(default_zone=cfg.time_zone, locale=cfg.locale)
    with _reporting_errors():
        window = compute_week_range(
            _anchor(clock, cfg.time_zone, anchor), cfg.time_zone, clock, cfg.week_convention
        )
        if offset:
            window = shift_week(window, offset, clock)
        starts = day_starts(window, clock)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="bold", justify="right", width=3)
    table.add_column("Day")
    table.add_column("Local midnight (UTC)", style="dim")
    for i, start in enumerate(starts):
        table.add_row(
            str(i),
            clock.format(start, zone=cfg.time_zone, date_style="full", time_style=None),
            instant_to_iso(start),
        )
    console.print(table)
    hours = window.duration_ms / 3_600_000
    console.print(
        f"[bold]Window:[/] {instant_to_iso(window.start)} → {instant_to_iso(window.end)}"
        f" [dim]({hours:g}h, {window.convention})[/dim]"
    )


@app.command()
def conflicts(
    events_file: Annotated[Path, typer.Argument(help="JSON list of task records")],
    start: Annotated[str, typer.Option("--start", help="Candidate start (local or ISO)")],
    end: Annotated[str, typer.Option("--end", help="Candidate end (local or ISO)")],
    event_id: Annotated[str, typer.Option("--id", help="ID of the event being moved")] = "",
) -> None:
    """Check a candidate interval against the events in a file.

    Exits with code 1 when the candidate overlaps any event.
    """
    cfg = _build_config()
    clock = ZonedClock(default_zone=cfg.time_zone, locale=cfg.locale)
    events = _load_events(events_file)
    with _reporting_errors():
        candidate = Candidate(
            event_id,
            clock.parse(start, cfg.time_zone).epoch_ms,
            clock.parse(end, cfg.time_zone).epoch_ms,
        )
        overlapping = detect_conflicts(events, candidate)

    if not overlapping:
        console.print("[green]No conflicts ✓[/]")
        return
    console.print(_event_table(overlapping, clock, cfg.time_zone, "Conflicts"))
    raise typer.Exit(1)


@app.command()
def drag(
    events_file: Annotated[Path, typer.Argument(help="JSON list of task records")],
    event_id: Annotated[str, typer.Option("--id", help="ID of the event to drag")],
    kind: Annotated[DragKind, typer.Option(help="Which part of the event is dragged")] = (
        DragKind.MOVE
    ),
    dx: Annotated[float, typer.Option("--dx", help="Horizontal pointer travel (px)")] = 0.0,
    dy: Annotated[float, typer.Option("--dy", help="Vertical pointer travel (px)")] = 0.0,
    width: Annotated[float, typer.Option("--width", help="Surface width (px)")] = 700.0,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Keep new time despite conflicts")] = (
        False
    ),
) -> None:
    """Simulate a drag gesture on one event and print the commit request."""
    cfg = _build_config()
    clock = ZonedClock(default_zone=cfg.time_zone, locale=cfg.locale)
    events = _load_events(events_file)
    target = next((event for event in events if event.id == event_id), None)
    if target is None:
        console.print(f"[bold red]Error:[/] Event [cyan]{event_id}[/] not found or unscheduled.")
        raise typer.Exit(1)

    committed: list[Candidate] = []
    with _reporting_errors():
        surface = PlannerSurface(cfg, anchor=clock.zoned(target.start, cfg.time_zone), clock=clock)
        surface.begin(target, kind, Pointer(0.0, 0.0))
        result = surface.drop(Pointer(dx, dy), ContainerBounds(width), events, committed.append)

    console.print(
        f"[bold]{target.title or target.id}:[/] "
        f"{clock.format_range(target.start, target.end, zone=cfg.time_zone)} → "
        f"{clock.format_range(result.candidate.start, result.candidate.end, zone=cfg.time_zone)}"
    )

    if result.pending is not None:
        console.print(_event_table(result.conflicts, clock, cfg.time_zone, "Schedule conflict"))
        if yes or typer.confirm("Keep new time anyway?", default=False):
            result.pending.confirm()
        else:
            result.pending.cancel()
            console.print("[yellow]Change discarded[/]")
            return

    for candidate in committed:
        console.print_json(json.dumps(build_commit_payload(candidate)))


@app.command()
def nudges(
    times: Annotated[list[str], typer.Argument(help="Daily nudge times, HH:MM")],
    anchor: Annotated[
        str | None, typer.Option("--anchor", help="Any date in the week (default: today)")
    ] = None,
    duration: Annotated[int, typer.Option("--duration", help="Minutes per nudge")] = 10,
    title: Annotated[str, typer.Option("--title", help="Event title")] = "Nudge",
) -> None:
    """Expand daily nudge times into events for one week."""
    cfg = _build_config()
    clock = ZonedClock(default_zone=cfg.time_zone, locale=cfg.locale)
    with _reporting_errors():
        schedule = []
        for time in times:
            schedule = add_nudge_time(schedule, time)
        events = build_nudge_events(
            schedule,
            _anchor(clock, cfg.time_zone, anchor),
            cfg.time_zone,
            clock,
            duration_minutes=duration,
            title=title,
        )
    console.print(_event_table(events, clock, cfg.time_zone, f"{len(events)} nudge(s)"))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
