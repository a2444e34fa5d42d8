"""CLI entry point for windowed analytics.

Examples:
    python run_analytics.py --fixture
    python run_analytics.py --window 30d
    python run_analytics.py --window 90d --group-by gpu

Prints the summary as JSON. When no job falls inside the window the output has
"has_data": false.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

import httpx

from gpu_job_engine.analytics import ROLLUP_KEYS, WINDOW_DAYS, analyze, rollup
from gpu_job_engine.logging_conf import configure_logging
from gpu_job_engine.sources import ProviderError, VastSource
from run_fetch import add_source_args

logger = logging.getLogger("run_analytics")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Summarize GPU rental jobs over a trailing window.")
    add_source_args(p)
    p.add_argument("--window", type=str, default="7d", choices=sorted(WINDOW_DAYS), help="Trailing window.")
    p.add_argument(
        "--group-by",
        type=str,
        default=None,
        choices=ROLLUP_KEYS,
        help="Also print per-group rollups over all fetched jobs.",
    )
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, json_lines=args.log_json)

    source = VastSource(api_key=args.api_key, use_fixture=args.fixture)
    try:
        jobs = source.fetch()
    except (ProviderError, httpx.HTTPError) as exc:
        logger.error("Failed to fetch jobs: %s", exc)
        return 1

    data = {"summary": analyze(jobs, args.window).model_dump(mode="json")}
    if args.group_by:
        data["rollup"] = {k: v.model_dump(mode="json") for k, v in rollup(jobs, args.group_by).items()}

    print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
