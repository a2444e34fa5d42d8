"""CLI entry point.

This script fetches GPU jobs, filters / sorts / pages them, prints the page,
and optionally writes the filtered (not paginated) jobs to a CSV or JSON file.

Examples:
    python run_fetch.py --fixture
    python run_fetch.py --gpu A100 --sort cost --asc
    python run_fetch.py --min-cost 0.5 --max-runtime 2:: --out jobs.csv
    python run_fetch.py --status running --out jobs.json --format json

Runtime bounds are given as H:M:S; any part may be left blank ("1::" is one hour).
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from gpu_job_engine.export import export_filename, export_jobs
from gpu_job_engine.logging_conf import configure_logging
from gpu_job_engine.models import (
    PAGE_SIZE_OPTIONS,
    CostRange,
    DurationInput,
    FilterState,
    Job,
    PageState,
    RuntimeRange,
    SortState,
)
from gpu_job_engine.query import filter_jobs, query
from gpu_job_engine.sources import ProviderError, VastSource

logger = logging.getLogger("run_fetch")

FIXTURE_ENV = "GPU_JOBS_USE_FIXTURE"
SORT_KEYS = ["id", "gpu", "region", "cost", "status", "runtime", "created_at"]


def env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes"}


def parse_duration(value: Optional[str]) -> Optional[DurationInput]:
    """Split 'H:M:S' into a DurationInput; missing trailing parts are blank."""
    if value is None:
        return None
    parts = value.split(":")
    parts += [""] * (3 - len(parts))
    return DurationInput(hours=parts[0], minutes=parts[1], seconds=parts[2])


def add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--api-key", type=str, default=None, help="Vast.ai API key (default: $VAST_API_KEY).")
    p.add_argument(
        "--fixture",
        action=argparse.BooleanOptionalAction,
        default=env_flag(FIXTURE_ENV),
        help=f"Use built-in fixture instances instead of calling the provider (default: ${FIXTURE_ENV}).",
    )
    p.add_argument("--log-level", type=str, default="INFO", help="Logging level.")
    p.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines.")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch, filter and page GPU rental jobs.")
    add_source_args(p)
    p.add_argument("--gpu", type=str, default=None, help="Exact GPU label to keep.")
    p.add_argument("--region", type=str, default=None, help="Exact region label to keep.")
    p.add_argument("--status", type=str, default=None, help="Exact status to keep.")
    p.add_argument("--min-cost", type=str, default=None, help="Minimum hourly cost (inclusive).")
    p.add_argument("--max-cost", type=str, default=None, help="Maximum hourly cost (inclusive).")
    p.add_argument("--min-runtime", type=str, default=None, help="Minimum runtime as H:M:S.")
    p.add_argument("--max-runtime", type=str, default=None, help="Maximum runtime as H:M:S.")
    p.add_argument("--sort", type=str, default="created_at", choices=SORT_KEYS, help="Sort column.")
    p.add_argument("--asc", action="store_true", help="Sort ascending (default is descending).")
    p.add_argument("--page", type=int, default=0, help="0-based page index.")
    p.add_argument("--page-size", type=int, default=20, choices=PAGE_SIZE_OPTIONS, help="Rows per page.")
    p.add_argument("--out", type=str, default=None, help="Write the filtered jobs to this file.")
    p.add_argument(
        "--format",
        type=str,
        default=None,
        choices=["csv", "json"],
        help="Export format (default: from --out suffix, else csv).",
    )
    return p.parse_args(argv)


def build_filters(args: argparse.Namespace) -> FilterState:
    return FilterState(
        gpu=args.gpu,
        region=args.region,
        status=args.status,
        cost=CostRange(min=args.min_cost, max=args.max_cost),
        runtime=RuntimeRange(min=parse_duration(args.min_runtime), max=parse_duration(args.max_runtime)),
    )


def format_row(job: Job) -> str:
    return (
        f"{job.id:<10} {job.gpu:<12} {job.region:<12} ${job.cost:>7.2f} "
        f"{job.status:<10} {job.runtime:>8}s {job.created_at.isoformat()}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, json_lines=args.log_json)

    source = VastSource(api_key=args.api_key, use_fixture=args.fixture)
    try:
        jobs = source.fetch()
    except (ProviderError, httpx.HTTPError) as exc:
        logger.error("Failed to fetch jobs: %s", exc)
        return 1

    filters = build_filters(args)
    page = PageState(page_index=max(args.page, 0), page_size=args.page_size)
    result = query(
        jobs,
        filters=filters,
        sort=SortState(key=args.sort, descending=not args.asc),
        page=page,
    )

    for job in result.rows:
        print(format_row(job))
    print(
        f"Showing {len(result.rows)} of {result.total_filtered} matching jobs "
        f"({result.total_all} total), page {page.page_index + 1} of {max(result.page_count, 1)}"
    )

    if args.out:
        out_path = Path(args.out).expanduser().resolve()
        fmt = args.format or ("json" if out_path.suffix.lower() == ".json" else "csv")
        if out_path.is_dir():
            out_path = out_path / export_filename(fmt)
        out_path.parent.mkdir(parents=True, exist_ok=True)

        filtered = filter_jobs(jobs, filters)
        out_path.write_text(export_jobs(filtered, filters, fmt), encoding="utf-8")
        print(f"Wrote {len(filtered)} jobs to: {out_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
