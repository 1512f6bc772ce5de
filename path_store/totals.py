"""
Recording totals for the current week and all time.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List

from path_store.data_models import PersistedPath


@dataclass(frozen=True)
class PeriodTotals:
    sessions: int = 0
    distance_km: float = 0.0
    duration_min: float = 0.0


@dataclass(frozen=True)
class RecordingTotals:
    this_week: PeriodTotals
    all_time: PeriodTotals


def start_of_week(now: datetime) -> datetime:
    """Midnight of the most recent Sunday (weeks start on Sunday)."""
    days_since_sunday = (now.weekday() + 1) % 7
    start = now - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def _sum(paths: List[PersistedPath]) -> PeriodTotals:
    return PeriodTotals(
        sessions=len(paths),
        distance_km=sum(p.distance_km for p in paths),
        duration_min=sum(p.duration_min for p in paths),
    )


def compute_totals(paths: Iterable[PersistedPath], now: datetime) -> RecordingTotals:
    """
    Aggregate stored paths into this-week and all-time totals.

    Args:
        paths: Stored paths
        now: Reference instant; naive values are taken as local time

    Returns:
        RecordingTotals
    """
    if now.tzinfo is None:
        now = now.astimezone()
    week_start = start_of_week(now)

    all_paths = list(paths)
    this_week = []
    for path in all_paths:
        path_date = path.date if path.date.tzinfo else path.date.replace(tzinfo=timezone.utc)
        if path_date >= week_start:
            this_week.append(path)

    return RecordingTotals(this_week=_sum(this_week), all_time=_sum(all_paths))
