"""Normalization & heuristics.

This module turns raw provider instance records into Jobs:
- status inference from free-form provider state strings
- epoch / ISO timestamp parsing
- numeric cleanup (negative or junk cost/runtime become 0)

Provider fields the engine does not read are kept in `metadata`, in the order
the provider sent them, so a detail view can show them without re-fetching.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Job, JobStatus
from .utils import parse_number

logger = logging.getLogger(__name__)


# Checked in order; the first hit wins. Anything else is treated as queued.
STATUS_PATTERNS: List[Tuple[str, JobStatus]] = [
    (r"cancel", "cancelled"),
    (r"fail|error", "failed"),
    (r"complet|finish|exit|done|stop", "completed"),
    (r"run", "running"),
]
FALLBACK_STATUS: JobStatus = "queued"

# Vast.ai instance fields read into Job attributes.
ID_FIELD = "id"
GPU_FIELD = "gpu_name"
REGION_FIELD = "geolocation"
COST_FIELD = "dph_total"
STATE_FIELDS = ("cur_state", "actual_status")
RUNTIME_FIELD = "duration"
START_FIELD = "start_date"

NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")

CORE_FIELDS = {ID_FIELD, GPU_FIELD, REGION_FIELD, COST_FIELD, RUNTIME_FIELD, START_FIELD, *STATE_FIELDS}


def map_status(raw: Any) -> JobStatus:
    """Infer a job status from a provider state string."""
    text = str(raw or "").strip().lower()
    for pat, status in STATUS_PATTERNS:
        if re.search(pat, text):
            return status
    return FALLBACK_STATUS


def parse_epoch(value: Any) -> Optional[datetime]:
    """Parse epoch seconds, epoch milliseconds or an ISO string to UTC."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if NUMERIC_RE.match(value):
            value = float(value)
        else:
            try:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)

    if isinstance(value, (int, float)):
        ts = float(value)
        if math.isnan(ts):
            return None
        # Some endpoints report milliseconds.
        if ts > 1e12:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    return None


def _non_negative(value: Any) -> float:
    number = parse_number(value)
    if number is None or math.isinf(number) or number < 0:
        return 0.0
    return number


def _label(value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    return text or "Unknown"


def normalize_instance(raw: Dict[str, Any], fetched_at: datetime) -> Optional[Job]:
    """Map one provider instance to a Job, or None when it has no id."""
    raw_id = raw.get(ID_FIELD)
    if raw_id is None or str(raw_id).strip() == "":
        return None

    state = next((raw[f] for f in STATE_FIELDS if raw.get(f)), None)
    created_at = parse_epoch(raw.get(START_FIELD)) or fetched_at

    return Job(
        id=str(raw_id).strip(),
        gpu=_label(raw.get(GPU_FIELD)),
        region=_label(raw.get(REGION_FIELD)),
        cost=_non_negative(raw.get(COST_FIELD)),
        status=map_status(state),
        runtime=int(_non_negative(raw.get(RUNTIME_FIELD))),
        created_at=created_at,
        metadata={k: v for k, v in raw.items() if k not in CORE_FIELDS},
    )


def normalize_instances(records: Iterable[Dict[str, Any]], fetched_at: datetime) -> List[Job]:
    """Normalize a provider payload, skipping unusable records and duplicate ids."""
    seen = set()
    out: List[Job] = []
    for raw in records:
        if not isinstance(raw, dict):
            continue
        job = normalize_instance(raw, fetched_at)
        if job is None:
            logger.debug("Skipping instance without id: %r", raw)
            continue
        if job.id in seen:
            logger.warning("Duplicate instance id %s; keeping the first", job.id)
            continue
        seen.add(job.id)
        out.append(job)
    return out
