"""
Rich console configuration for the vehicle tracker.

Provides styled terminal output: logging, progress bars, path tables and
summary panels.
"""

import logging
from typing import Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme
from rich.panel import Panel
from rich.table import Table
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
)

from config import TrackerConfig
from path_store.data_models import PersistedPath
from path_store.styling import path_style
from path_store.totals import PeriodTotals, RecordingTotals

TRACKER_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "highlight": "bold magenta",
    "muted": "dim",
    "gps": "green",
    "bearing": "bold blue",
    "distance": "bold cyan",
})

# Global console instance
console = Console(theme=TRACKER_THEME)


def setup_rich_logging(verbose: bool = False) -> None:
    """
    Configure logging to use Rich handler.

    Args:
        verbose: Enable DEBUG level logging with full details
    """
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                show_time=verbose,
                show_path=verbose,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=False,
            )
        ],
        force=True,
    )


def format_distance(km: float) -> str:
    """Meters below 1 km, otherwise one decimal of km."""
    if km < 1:
        return f"{round(km * 1000)}m"
    return f"{km:.1f}km"


def format_duration(minutes: float) -> str:
    """Minutes below an hour, otherwise hours and minutes."""
    total = round(minutes)
    if total < 60:
        return f"{total}m"
    hours, mins = divmod(total, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def create_replay_progress() -> Progress:
    """
    Create a progress bar for route replay.

    Returns:
        Configured Progress instance with a status field
    """
    return Progress(
        SpinnerColumn("dots"),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40, style="cyan", complete_style="green"),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TextColumn("[dim]{task.fields[status]}[/]"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_banner(version: str = "1.0.0") -> None:
    console.print("[bold cyan]Vehicle Tracker[/] [dim]position smoothing, heading-up rotation, path recording[/]")
    console.print(f"[muted]Version {version}[/]\n")


def print_config_summary(config: TrackerConfig, route: str, point_count: int) -> None:
    """Print the settings a replay runs with."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Route", f"[gps]{route}[/] ({point_count:,} points)")
    table.add_row("Interpolation", f"{config.interpolation_duration_ms:.0f}ms")
    table.add_row(
        "Rotation Gate",
        f"> {config.rotation_min_distance_m:.0f}m, > {config.rotation_cooldown_ms / 1000:.1f}s, "
        f"> {config.rotation_min_angle_deg:.0f}°",
    )
    table.add_row("Color Scheme", config.color_scheme)
    table.add_row("GPS Accuracy", config.gps_accuracy)
    table.add_row("Store", f"[green]{config.resolved_store_path}[/]")

    console.print(Panel(table, title="[bold]Configuration[/]", border_style="cyan", padding=(1, 2)))
    console.print()


def print_paths_table(paths: Iterable[PersistedPath], scheme: str = "bright") -> None:
    """List stored paths, newest first."""
    paths = list(paths)
    if not paths:
        console.print("[muted]No recorded paths yet[/]")
        return

    table = Table(title="Recorded Paths", header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name")
    table.add_column("Date")
    table.add_column("Distance", justify="right", style="distance")
    table.add_column("Duration", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Style")

    count = len(paths)
    for index in range(count - 1, -1, -1):
        path = paths[index]
        style = path_style(index, scheme, count)
        table.add_row(
            path.id,
            path.name,
            f"{path.date:%Y-%m-%d %H:%M}",
            format_distance(path.distance_km),
            format_duration(path.duration_min),
            f"{path.point_count:,}",
            f"[{path.color}]■[/] {style.weight}px {style.opacity:.0%}",
        )
    console.print(table)


def _totals_row(table: Table, label: str, totals: PeriodTotals) -> None:
    table.add_row(
        label,
        str(totals.sessions),
        format_distance(totals.distance_km),
        format_duration(totals.duration_min),
    )


def print_totals(totals: RecordingTotals) -> None:
    table = Table(title="Recording Totals", header_style="bold cyan")
    table.add_column("Period")
    table.add_column("Sessions", justify="right")
    table.add_column("Distance", justify="right", style="distance")
    table.add_column("Duration", justify="right")
    _totals_row(table, "This Week", totals.this_week)
    _totals_row(table, "All Time", totals.all_time)
    console.print(table)


def print_session_summary(path: Optional[PersistedPath], fixes: int, rotations: int) -> None:
    """
    Print the outcome of a replay.

    Args:
        path: The saved recording, or None if nothing was saved
        fixes: Number of fixes delivered
        rotations: Number of rotation commands emitted
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold green")

    table.add_row("Fixes Delivered", f"{fixes:,}")
    table.add_row("View Rotations", f"{rotations:,}")
    if path is not None:
        table.add_row("Saved Path", path.id)
        table.add_row("Distance", format_distance(path.distance_km))
        table.add_row("Duration", format_duration(path.duration_min))
        table.add_row("Points", f"{path.point_count:,}")
    else:
        table.add_row("Saved Path", "[muted]none[/]")

    console.print()
    console.print(Panel(table, title="[bold green]Complete[/]", border_style="green", padding=(1, 2)))


def print_error(message: str, hint: Optional[str] = None) -> None:
    """
    Print a styled error message.

    Args:
        message: Error message
        hint: Optional hint for resolution
    """
    console.print(f"\n[error]Error:[/] {message}")
    if hint:
        console.print(f"[muted]Hint: {hint}[/]")
