"""
Tests for the filter predicates.

Validates:
- Unset categorical filters match everything; set ones match exactly
- Cost bounds are inclusive and unparseable bounds are ignored
- Runtime min applies when present, runtime max only when above zero
"""

import pytest

from gpu_job_engine.filters import (
    PREDICATES,
    duration_seconds,
    matches,
    matches_cost,
    matches_gpu,
    matches_runtime,
    matches_status,
)
from gpu_job_engine.models import CostRange, DurationInput, FilterState, RuntimeRange


class TestCategorical:
    def test_unset_matches_everything(self, make_job):
        job = make_job(gpu="T4")
        assert matches_gpu(job, FilterState())
        assert matches_gpu(job, FilterState(gpu=""))

    def test_exact_and_case_sensitive(self, make_job):
        job = make_job(gpu="A100")
        assert matches_gpu(job, FilterState(gpu="A100"))
        assert not matches_gpu(job, FilterState(gpu="a100"))
        assert not matches_gpu(job, FilterState(gpu="A10"))

    def test_status(self, make_job):
        job = make_job(status="failed")
        assert matches_status(job, FilterState(status="failed"))
        assert not matches_status(job, FilterState(status="running"))


class TestCostRange:
    @pytest.mark.parametrize(
        "low, high, cost, expected",
        [
            ("1", "2", 1.0, True),
            ("1", "2", 2.0, True),
            ("1", "2", 0.99, False),
            ("1", "2", 2.01, False),
            ("", "2", 0.0, True),
            ("abc", "", 100.0, True),
            (None, "0.5", 0.75, False),
            (0.5, None, 0.5, True),
        ],
    )
    def test_bounds(self, make_job, low, high, cost, expected):
        filters = FilterState(cost=CostRange(min=low, max=high))
        assert matches_cost(make_job(cost=cost), filters) is expected

    def test_nan_is_unbounded(self, make_job):
        filters = FilterState(cost=CostRange(min="nan", max="nan"))
        assert matches_cost(make_job(cost=3.0), filters)


class TestRuntimeRange:
    def test_duration_seconds(self):
        assert duration_seconds(DurationInput(hours="1", minutes="2", seconds="3")) == 3723
        assert duration_seconds(DurationInput(hours="", minutes="x", seconds=None)) == 0
        assert duration_seconds(DurationInput(hours="1.9")) == 3600

    def test_min_only_hour(self, make_job):
        filters = FilterState(runtime=RuntimeRange(min=DurationInput(hours="1", minutes="", seconds="")))
        assert not matches_runtime(make_job(runtime=3599), filters)
        assert matches_runtime(make_job(runtime=3600), filters)

    def test_blank_min_excludes_nothing(self, make_job):
        filters = FilterState(runtime=RuntimeRange(min=DurationInput()))
        assert matches_runtime(make_job(runtime=0), filters)

    def test_zero_max_is_not_set(self, make_job):
        filters = FilterState(runtime=RuntimeRange(max=DurationInput(hours="0", minutes="0", seconds="0")))
        assert matches_runtime(make_job(runtime=0), filters)
        assert matches_runtime(make_job(runtime=10**6), filters)

    def test_max_inclusive(self, make_job):
        filters = FilterState(runtime=RuntimeRange(max=DurationInput(minutes="30")))
        assert matches_runtime(make_job(runtime=1800), filters)
        assert not matches_runtime(make_job(runtime=1801), filters)


class TestComposition:
    def test_all_predicates_anded(self, make_job):
        filters = FilterState(gpu="A100", region="eu", cost=CostRange(max="2"))
        assert matches(make_job(gpu="A100", region="eu", cost=1.5), filters)
        assert not matches(make_job(gpu="A100", region="us-east", cost=1.5), filters)
        assert not matches(make_job(gpu="A100", region="eu", cost=2.5), filters)

    def test_empty_filter_state_passes_everything(self, make_job):
        job = make_job()
        assert all(pred(job, FilterState()) for pred in PREDICATES)
