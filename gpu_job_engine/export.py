"""CSV / JSON export of a filtered job list.

The caller hands over the already-filtered (not paginated) jobs plus the
filters that produced them. Output is text; writing it to disk or sending it
as a download is up to the caller.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .models import FilterState, Job

EXPORT_COLUMNS = ["id", "gpu", "region", "cost", "status", "runtime", "createdAt", "metadata"]

EXPORT_MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
}


def _iso(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def job_record(job: Job) -> Dict[str, Any]:
    """Serialize a job with camelCase keys and a Z-suffixed timestamp."""
    data = job.model_dump(mode="json", by_alias=True)
    data["createdAt"] = _iso(job.created_at)
    return data


def _prune(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _prune(value)
        if value is None or value == "" or value == {}:
            continue
        out[key] = value
    return out


def active_filters(filters: Optional[FilterState]) -> Dict[str, Any]:
    """Only the filters that were actually set, for the export header.

    A runtime group that was entered but left blank is kept as `{}`, since a
    present min group still counts as set.
    """
    if filters is None:
        return {}
    out = _prune(filters.model_dump(mode="json"))
    runtime: Dict[str, Any] = {}
    for side in ("min", "max"):
        group = getattr(filters.runtime, side)
        if group is not None:
            runtime[side] = _prune(group.model_dump(mode="json"))
    if runtime:
        out["runtime"] = runtime
    return out


def to_csv(jobs: Sequence[Job], filters: Optional[FilterState] = None) -> str:
    """CSV with a header row, one row per job, in the given order."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for job in jobs:
        writer.writerow(
            [
                job.id,
                job.gpu,
                job.region,
                job.cost,
                job.status,
                job.runtime,
                _iso(job.created_at),
                json.dumps(job.metadata, ensure_ascii=False, separators=(",", ":"), default=str),
            ]
        )
    return buf.getvalue()


def to_json(
    jobs: Sequence[Job],
    filters: Optional[FilterState] = None,
    exported_at: Optional[datetime] = None,
) -> str:
    if exported_at is None:
        exported_at = datetime.now(timezone.utc)
    records: List[Dict[str, Any]] = [job_record(job) for job in jobs]
    payload = {
        "exportedAt": _iso(exported_at),
        "filters": active_filters(filters),
        "count": len(records),
        "jobs": records,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def export_jobs(
    jobs: Sequence[Job],
    filters: Optional[FilterState] = None,
    fmt: str = "csv",
    exported_at: Optional[datetime] = None,
) -> str:
    if fmt == "csv":
        return to_csv(jobs, filters)
    if fmt == "json":
        return to_json(jobs, filters, exported_at=exported_at)
    raise ValueError(f"Unsupported export format: {fmt!r}")


def export_filename(fmt: str, now: Optional[datetime] = None) -> str:
    """E.g. gpu-jobs-20250101-120000.csv"""
    if fmt not in EXPORT_MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    if now is None:
        now = datetime.now(timezone.utc)
    return f"gpu-jobs-{now.strftime('%Y%m%d-%H%M%S')}.{fmt}"
