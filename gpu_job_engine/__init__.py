"""GPU job engine package.

The package is structured around one in-memory job snapshot:
- `models.py` defines the stable schema (Job, filter/sort/page state, results).
- `sources/` contains provider connectors that fetch and normalize jobs.
- `filters.py` and `query.py` filter, order and page the snapshot.
- `analytics.py` builds windowed summaries and grouped rollups.
- `export.py` turns a filtered job list into CSV or JSON text.
"""

from .analytics import analyze, rollup
from .models import (
    AnalyticsSummary,
    EmptyAnalytics,
    FilterState,
    Job,
    PageResult,
    PageState,
    SortState,
)
from .query import filter_jobs, filter_options, query

__all__ = [
    "AnalyticsSummary",
    "EmptyAnalytics",
    "FilterState",
    "Job",
    "PageResult",
    "PageState",
    "SortState",
    "analyze",
    "filter_jobs",
    "filter_options",
    "query",
    "rollup",
]
