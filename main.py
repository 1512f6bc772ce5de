#!/usr/bin/env python3
"""
Vehicle tracker command line.

    python main.py replay route.kml --speed 2
    python main.py paths list
    python main.py paths export recordings.gpx
    python main.py totals
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from config import TrackerConfig, load_config
from location_source import SimulatedLocationSource, interval_for_speed
from path_store.data_models import PersistedPath
from path_store.gpx_writer import write_gpx
from path_store.storage import JsonFileStorage
from path_store.store import PathStore
from path_store.totals import compute_totals
from rich_console import (
    console,
    create_replay_progress,
    print_banner,
    print_config_summary,
    print_error,
    print_paths_table,
    print_session_summary,
    print_totals,
    setup_rich_logging,
)
from rotation import RotationCommand
from scheduler import ManualClock, ManualFrameScheduler, WallClock
from tracker import TrackingSession

logger = logging.getLogger(__name__)

__version__ = "1.0.0"


@dataclass
class ReplayResult:
    fixes: int = 0
    rotations: List[RotationCommand] = field(default_factory=list)
    path: Optional[PersistedPath] = None


def replay_route(source: SimulatedLocationSource, store: PathStore, config: TrackerConfig,
                 clock: ManualClock, speed: float = 1.0, record: bool = True,
                 progress_callback=None) -> ReplayResult:
    """
    Drive a simulated source through the full tracking pipeline.

    Time is simulated: after each fix the animation frames run to completion
    and the clock is moved on to the next fix interval.

    Args:
        source: Simulated source with looping disabled
        store: Store that receives the recording
        config: Tracker configuration
        clock: Manual clock shared by the source and the session
        speed: Playback speed multiplier (sets the fix interval)
        record: Record the replayed route and persist it
        progress_callback: Optional callable(delivered, total)

    Returns:
        ReplayResult with fix count, rotation commands and the saved path
    """
    result = ReplayResult()
    scheduler = ManualFrameScheduler(clock)
    interval_ms = interval_for_speed(speed)

    session = TrackingSession(
        source, store, scheduler,
        config=config,
        clock=clock,
        wall_clock=clock,
        on_rotation=result.rotations.append,
    )
    session.start()
    if record:
        session.start_recording()

    try:
        total = len(source.points)
        while not source.finished and session.is_watching:
            tick_start = clock()
            if source.step() is not None:
                result.fixes += 1
            scheduler.run_until_idle()
            remaining = interval_ms - (clock() - tick_start)
            if remaining > 0:
                clock.advance(remaining)
            if progress_callback:
                progress_callback(source.current_index, total)
    finally:
        session.close()
        if record:
            result.path = session.stop_recording()

    if session.last_error is not None:
        logger.warning(f"Replay halted by location error: {session.last_error.message}")
    return result


def _open_store(config: TrackerConfig) -> PathStore:
    return PathStore(JsonFileStorage(config.resolved_store_path))


def _cmd_replay(args: argparse.Namespace, config: TrackerConfig) -> int:
    route = Path(args.route)
    try:
        kml = route.read_text(encoding='utf-8')
    except OSError as e:
        print_error(f"Cannot read route file {route}: {e}")
        return 1

    clock = ManualClock(WallClock()())
    source = SimulatedLocationSource.from_kml(kml, clock=clock, loop=False)
    if not source.points:
        print_error(f"No coordinates found in {route}", hint="Expected <gx:coord> or <coordinates> elements")
        return 1

    print_banner(__version__)
    print_config_summary(config, str(route), len(source.points))

    store = _open_store(config)
    with create_replay_progress() as progress:
        task = progress.add_task("Replaying", total=len(source.points), status="")

        def on_progress(done: int, total: int) -> None:
            progress.update(task, completed=done, status=f"{done}/{total} fixes")

        try:
            result = replay_route(
                source, store, config, clock,
                speed=args.speed, record=not args.no_record, progress_callback=on_progress,
            )
        except OSError as e:
            print_error(f"Could not save the recording: {e}", hint=f"Check that {config.resolved_store_path} is writable")
            return 1

    print_session_summary(result.path, result.fixes, len(result.rotations))
    return 0


def _cmd_paths_list(args: argparse.Namespace, config: TrackerConfig) -> int:
    print_paths_table(_open_store(config).all(), config.color_scheme)
    return 0


def _cmd_paths_delete(args: argparse.Namespace, config: TrackerConfig) -> int:
    if _open_store(config).delete_by_id(args.path_id):
        console.print(f"[success]Deleted[/] {args.path_id}")
    else:
        console.print(f"[muted]No path with id {args.path_id}[/]")
    return 0


def _cmd_paths_clear(args: argparse.Namespace, config: TrackerConfig) -> int:
    store = _open_store(config)
    count = len(store)
    store.clear_all()
    console.print(f"[success]Cleared[/] {count} path(s)")
    return 0


def _cmd_paths_export(args: argparse.Namespace, config: TrackerConfig) -> int:
    output_path = Path(args.output)
    if not output_path.suffix:
        output_path = output_path.with_suffix('.gpx')

    paths = _open_store(config).all()
    with open(output_path, 'w', encoding='utf-8') as f:
        write_gpx(paths, f)
    console.print(f"[success]Exported[/] {len(paths)} path(s) to [green]{output_path}[/]")
    return 0


def _cmd_totals(args: argparse.Namespace, config: TrackerConfig) -> int:
    print_totals(compute_totals(_open_store(config).all(), datetime.now().astimezone()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Track, smooth and record vehicle paths.")
    parser.add_argument("--config", help="JSON file with tracker settings")
    parser.add_argument("--store", help="Path of the storage file holding recorded paths")
    parser.add_argument("--color-scheme", choices=["bright", "fade"], help="How stored paths are styled")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Replay a KML route through the tracking pipeline")
    replay.add_argument("route", help="KML file with <gx:coord> or <coordinates> points")
    replay.add_argument("--speed", type=float, default=1.0, help="Playback speed multiplier")
    replay.add_argument("--no-record", action="store_true", help="Don't record or save the route")
    replay.set_defaults(handler=_cmd_replay)

    paths = sub.add_parser("paths", help="Manage recorded paths")
    paths_sub = paths.add_subparsers(dest="paths_command", required=True)

    paths_list = paths_sub.add_parser("list", help="List recorded paths")
    paths_list.set_defaults(handler=_cmd_paths_list)

    paths_delete = paths_sub.add_parser("delete", help="Delete one recorded path")
    paths_delete.add_argument("path_id")
    paths_delete.set_defaults(handler=_cmd_paths_delete)

    paths_clear = paths_sub.add_parser("clear", help="Delete every recorded path")
    paths_clear.set_defaults(handler=_cmd_paths_clear)

    paths_export = paths_sub.add_parser("export", help="Export recorded paths to GPX")
    paths_export.add_argument("output", help="Output .gpx file")
    paths_export.set_defaults(handler=_cmd_paths_export)

    totals = sub.add_parser("totals", help="Show this-week and all-time totals")
    totals.set_defaults(handler=_cmd_totals)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_rich_logging(args.verbose)

    try:
        config = load_config(args.config, store_path=args.store, color_scheme=args.color_scheme)
    except (OSError, ValueError, ValidationError) as e:
        print_error(f"Configuration error: {e}")
        return 1

    if getattr(args, "speed", 1.0) <= 0:
        print_error("--speed must be positive")
        return 1

    return args.handler(args, config)


if __name__ == "__main__":
    sys.exit(main())
