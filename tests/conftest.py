"""Shared fixtures: a job factory and a fixed clock."""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from gpu_job_engine.models import Job

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_job():
    """Build a Job with sensible defaults; override any field by keyword."""
    ids = count(1)

    def _make(**overrides) -> Job:
        n = next(ids)
        fields = {
            "id": f"job-{n}",
            "gpu": "A100",
            "region": "us-east",
            "cost": 1.0,
            "status": "running",
            "runtime": 3600,
            "created_at": NOW - timedelta(hours=n),
            "metadata": {},
        }
        fields.update(overrides)
        return Job(**fields)

    return _make
