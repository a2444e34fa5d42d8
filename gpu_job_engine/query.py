"""Query engine: filter, order and page a job snapshot.

Every call recomputes from its arguments. Nothing is cached between calls and
the caller's list is never modified, so the same inputs always give the same
page.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from .filters import matches
from .models import FilterOptions, FilterState, Job, PageResult, PageState, SortState
from .utils import uniq_preserve_order

logger = logging.getLogger(__name__)

DEFAULT_SORT = SortState(key="created_at", descending=True)


def filter_jobs(jobs: Sequence[Job], filters: Optional[FilterState] = None) -> List[Job]:
    """Return the jobs passing every active filter, in their original order.

    This is also what exports consume: filtered, not paginated.
    """
    if filters is None:
        return list(jobs)
    return [job for job in jobs if matches(job, filters)]


def sort_jobs(jobs: Sequence[Job], sort: Union[SortState, Sequence[SortState], None] = None) -> List[Job]:
    """Stable sort by one key, or several (primary key first).

    Jobs with equal keys keep their input order in both directions.
    """
    if sort is None:
        sort = DEFAULT_SORT
    keys = [sort] if isinstance(sort, SortState) else list(sort)

    out = list(jobs)
    # Least significant key first; each pass is stable.
    for state in reversed(keys):
        out.sort(key=lambda job, k=state.key: getattr(job, k), reverse=state.descending)
    return out


def paginate(jobs: Sequence[Job], page: Optional[PageState] = None) -> List[Job]:
    """Slice one page. A page past the end is empty."""
    if page is None:
        page = PageState()
    start = page.page_index * page.page_size
    return list(jobs[start : start + page.page_size])


def query(
    jobs: Sequence[Job],
    filters: Optional[FilterState] = None,
    sort: Union[SortState, Sequence[SortState], None] = None,
    page: Optional[PageState] = None,
) -> PageResult:
    """Filter, sort and page a snapshot in one pass."""
    if page is None:
        page = PageState()
    filtered = filter_jobs(jobs, filters)
    ordered = sort_jobs(filtered, sort)
    rows = paginate(ordered, page)
    logger.debug(
        "query: %d of %d jobs matched, page %d returned %d rows",
        len(filtered),
        len(jobs),
        page.page_index,
        len(rows),
    )
    return PageResult(
        rows=rows,
        total_filtered=len(filtered),
        total_all=len(jobs),
        page_size=page.page_size,
    )


def filter_options(jobs: Sequence[Job]) -> FilterOptions:
    """Distinct values for each categorical filter, in first-seen order."""
    return FilterOptions(
        gpus=uniq_preserve_order(job.gpu for job in jobs),
        regions=uniq_preserve_order(job.region for job in jobs),
        statuses=uniq_preserve_order(job.status for job in jobs),
    )
