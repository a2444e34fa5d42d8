"""Filter predicates over a Job.

Each predicate answers one question ("does this job pass the GPU filter?") and
is true when its filter is not set. Malformed inputs never raise: an
unparseable bound is simply treated as absent.

The runtime range is deliberately asymmetric. A min group constrains as soon
as it is present (a blank min collapses to 0, which excludes nothing), while a
max group only constrains when it adds up to more than 0, so an all-blank max
does not exclude every job.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from .models import DurationInput, FilterState, Job
from .utils import parse_int_part, parse_number

Predicate = Callable[[Job, FilterState], bool]


def duration_seconds(group: DurationInput) -> int:
    """Collapse an h/m/s group into seconds; blank parts count as 0."""
    return (
        parse_int_part(group.hours) * 3600
        + parse_int_part(group.minutes) * 60
        + parse_int_part(group.seconds)
    )


def _equals(expected: Optional[str], actual: str) -> bool:
    if expected is None or expected == "":
        return True
    return actual == expected


def matches_gpu(job: Job, filters: FilterState) -> bool:
    return _equals(filters.gpu, job.gpu)


def matches_region(job: Job, filters: FilterState) -> bool:
    return _equals(filters.region, job.region)


def matches_status(job: Job, filters: FilterState) -> bool:
    return _equals(filters.status, job.status)


def matches_cost(job: Job, filters: FilterState) -> bool:
    """Inclusive cost range; either side may be unbounded."""
    low = parse_number(filters.cost.min)
    high = parse_number(filters.cost.max)
    if low is not None and job.cost < low:
        return False
    if high is not None and job.cost > high:
        return False
    return True


def matches_runtime(job: Job, filters: FilterState) -> bool:
    """Inclusive runtime range built from h/m/s groups."""
    bounds = filters.runtime
    if bounds.min is not None and job.runtime < duration_seconds(bounds.min):
        return False
    if bounds.max is not None:
        high = duration_seconds(bounds.max)
        if high > 0 and job.runtime > high:
            return False
    return True


PREDICATES: Tuple[Predicate, ...] = (
    matches_gpu,
    matches_region,
    matches_status,
    matches_cost,
    matches_runtime,
)


def matches(job: Job, filters: FilterState) -> bool:
    """True when the job passes every predicate."""
    return all(pred(job, filters) for pred in PREDICATES)
