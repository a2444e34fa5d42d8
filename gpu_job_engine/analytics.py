"""Aggregation engine.

`analyze` turns a job snapshot and a trailing window ("7d", "30d", "90d")
into a fixed summary:

- jobs per UTC calendar day (only days that have jobs, latest 14)
- actual spend per region (hourly rate x hours run), highest first
- jobs per GPU label, top 10
- totals, average runtime, and the 5 busiest regions by job count

Ties in every ranking keep first-seen order. Rounding is half-up to match the
dashboard numbers users already know. An empty window gives `EmptyAnalytics`
rather than a summary full of zeros.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from .models import (
    AnalyticsSummary,
    DayCount,
    EmptyAnalytics,
    GpuFrequency,
    GroupRollup,
    Job,
    RegionCost,
    RegionCount,
    TimeWindow,
)
from .utils import round_half_up

logger = logging.getLogger(__name__)

WINDOW_DAYS: Dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_WINDOW: TimeWindow = "7d"

SERIES_MAX_DAYS = 14
TOP_GPUS = 10
TOP_REGIONS = 5

ROLLUP_KEYS = ("gpu", "region", "status")


def resolve_window(value: Any) -> TimeWindow:
    """Map a window selector to a known window; unknown values mean 7 days."""
    if isinstance(value, str) and value in WINDOW_DAYS:
        return value  # type: ignore[return-value]
    return DEFAULT_WINDOW


def window_jobs(jobs: Sequence[Job], window: TimeWindow, now: datetime) -> List[Job]:
    cutoff = now - timedelta(days=WINDOW_DAYS[window])
    return [job for job in jobs if job.created_at >= cutoff]


def job_spend(job: Job) -> float:
    """What the job actually cost: hourly rate times hours run."""
    return job.cost * (job.runtime / 3600)


def _count_by(values: Sequence[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for v in values:
        counts[v] = counts.get(v, 0) + 1
    return counts


def _series_by_day(jobs: Sequence[Job]) -> List[DayCount]:
    counts = _count_by([job.created_at.date().isoformat() for job in jobs])
    days = sorted(counts)[-SERIES_MAX_DAYS:]
    return [DayCount(day=day, count=counts[day]) for day in days]


def _cost_by_region(jobs: Sequence[Job]) -> List[RegionCost]:
    totals: Dict[str, float] = {}
    for job in jobs:
        totals[job.region] = totals.get(job.region, 0.0) + job_spend(job)
    rows = [RegionCost(region=region, cost=round_half_up(total, 2)) for region, total in totals.items()]
    rows.sort(key=lambda r: r.cost, reverse=True)
    return rows


def _frequency_by_gpu(jobs: Sequence[Job]) -> List[GpuFrequency]:
    # The GPU label doubles as the "model" in usage charts.
    counts = _count_by([job.gpu for job in jobs])
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [GpuFrequency(gpu=gpu, count=n) for gpu, n in ranked[:TOP_GPUS]]


def _top_regions(jobs: Sequence[Job]) -> List[RegionCount]:
    counts = _count_by([job.region for job in jobs])
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [RegionCount(region=region, count=n) for region, n in ranked[:TOP_REGIONS]]


def analyze(
    jobs: Sequence[Job],
    window: Any = DEFAULT_WINDOW,
    now: Optional[datetime] = None,
) -> Union[AnalyticsSummary, EmptyAnalytics]:
    """Summarize the jobs created inside the trailing window ending at `now`.

    Args:
        jobs: Job snapshot; read only.
        window: "7d", "30d" or "90d". Anything else falls back to "7d".
        now: End of the window. Defaults to the current UTC time, read once.

    Returns:
        AnalyticsSummary, or EmptyAnalytics when no job is inside the window.
    """
    resolved = resolve_window(window)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    windowed = window_jobs(jobs, resolved, now)
    logger.debug("analyze: %d of %d jobs inside %s window", len(windowed), len(jobs), resolved)
    if not windowed:
        return EmptyAnalytics(window=resolved, generated_at=now)

    total_jobs = len(windowed)
    total_spend = sum(job_spend(job) for job in windowed)
    total_runtime = sum(job.runtime for job in windowed)

    return AnalyticsSummary(
        window=resolved,
        generated_at=now,
        series_by_day=_series_by_day(windowed),
        cost_by_region=_cost_by_region(windowed),
        frequency_by_gpu=_frequency_by_gpu(windowed),
        total_jobs=total_jobs,
        total_cost=round_half_up(total_spend, 2),
        average_runtime_seconds=int(round_half_up(total_runtime / total_jobs)),
        top_regions=_top_regions(windowed),
    )


def rollup(jobs: Sequence[Job], group_by: str) -> Dict[str, GroupRollup]:
    """Group jobs by gpu, region or status.

    Each group carries its job count, the sum of hourly rates and the mean
    runtime in seconds. Groups are returned in first-seen order.
    """
    if group_by not in ROLLUP_KEYS:
        raise ValueError(f"group_by must be one of {ROLLUP_KEYS}, got {group_by!r}")

    counts: Dict[str, int] = {}
    costs: Dict[str, float] = {}
    runtimes: Dict[str, int] = {}
    for job in jobs:
        key = getattr(job, group_by)
        counts[key] = counts.get(key, 0) + 1
        costs[key] = costs.get(key, 0.0) + job.cost
        runtimes[key] = runtimes.get(key, 0) + job.runtime

    return {
        key: GroupRollup(
            key=key,
            count=n,
            total_cost=costs[key],
            average_runtime=runtimes[key] / n if n > 0 else 0.0,
        )
        for key, n in counts.items()
    }
