"""
Tests for the query engine.

Validates:
- Every returned row satisfies the active filters
- Sorting is stable in both directions
- Pages are exhaustive and non-overlapping
- Out-of-range pages are empty
- Inputs are never mutated
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from gpu_job_engine.filters import matches
from gpu_job_engine.models import CostRange, FilterState, PageState, SortState
from gpu_job_engine.query import filter_jobs, filter_options, paginate, query, sort_jobs


@pytest.fixture
def mixed_jobs(make_job):
    return [
        make_job(gpu="A100", region="us-east", cost=1.2, runtime=100),
        make_job(gpu="T4", region="eu", cost=0.4, runtime=300),
        make_job(gpu="A100", region="eu", cost=1.1, runtime=200),
        make_job(gpu="T4", region="us-east", cost=0.4, runtime=50),
        make_job(gpu="A100", region="us-west", cost=1.2, runtime=400),
    ]


class TestFiltering:
    def test_gpu_filter_ignores_sort_and_page(self, mixed_jobs):
        filters = FilterState(gpu="A100")
        for sort in (SortState(key="cost"), SortState(key="id", descending=False)):
            result = query(mixed_jobs, filters, sort, PageState(page_size=10))
            assert result.total_filtered == 3
            assert len(result.rows) == 3
            assert {j.gpu for j in result.rows} == {"A100"}

    def test_rows_satisfy_filters(self, mixed_jobs):
        filters = FilterState(region="eu", cost=CostRange(min="0.5"))
        result = query(mixed_jobs, filters)
        assert result.total_filtered <= result.total_all == len(mixed_jobs)
        assert all(matches(j, filters) for j in result.rows)
        assert [j.id for j in result.rows] == [mixed_jobs[2].id]

    def test_filter_preserves_order(self, mixed_jobs):
        assert filter_jobs(mixed_jobs, FilterState(gpu="T4")) == [mixed_jobs[1], mixed_jobs[3]]

    def test_no_filters_returns_copy(self, mixed_jobs):
        out = filter_jobs(mixed_jobs)
        assert out == mixed_jobs
        assert out is not mixed_jobs


class TestSorting:
    def test_default_is_newest_first(self, mixed_jobs):
        result = query(mixed_jobs)
        created = [j.created_at for j in result.rows]
        assert created == sorted(created, reverse=True)

    @pytest.mark.parametrize("descending", [True, False])
    def test_stable_for_equal_keys(self, mixed_jobs, descending):
        ordered = sort_jobs(mixed_jobs, SortState(key="cost", descending=descending))
        ties = [j.id for j in ordered if j.cost == 1.2]
        assert ties == [mixed_jobs[0].id, mixed_jobs[4].id]
        cheap = [j.id for j in ordered if j.cost == 0.4]
        assert cheap == [mixed_jobs[1].id, mixed_jobs[3].id]

    def test_multi_key(self, mixed_jobs):
        ordered = sort_jobs(
            mixed_jobs,
            [SortState(key="gpu", descending=False), SortState(key="runtime", descending=True)],
        )
        assert [(j.gpu, j.runtime) for j in ordered] == [
            ("A100", 400),
            ("A100", 200),
            ("A100", 100),
            ("T4", 300),
            ("T4", 50),
        ]

    def test_sort_by_created_at_ascending(self, make_job, now):
        jobs = [make_job(created_at=now - timedelta(days=d)) for d in (3, 1, 2)]
        ordered = sort_jobs(jobs, SortState(key="created_at", descending=False))
        assert [j.created_at for j in ordered] == sorted(j.created_at for j in jobs)


class TestPagination:
    @pytest.mark.parametrize("size", [10, 20, 30, 40, 50])
    def test_pages_reconstruct_filtered_set(self, make_job, size):
        jobs = [make_job(cost=float(i % 7)) for i in range(123)]
        sort = SortState(key="cost")
        expected = sort_jobs(jobs, sort)
        rebuilt = []
        index = 0
        while True:
            page = query(jobs, None, sort, PageState(page_index=index, page_size=size))
            if not page.rows:
                break
            rebuilt.extend(page.rows)
            index += 1
        assert rebuilt == expected
        assert index == page.page_count

    def test_out_of_range_page_is_empty(self, mixed_jobs):
        result = query(mixed_jobs, page=PageState(page_index=99, page_size=10))
        assert result.rows == []
        assert result.total_filtered == 5

    def test_paginate_slice(self, mixed_jobs):
        assert paginate(mixed_jobs, PageState(page_index=0, page_size=10)) == mixed_jobs

    def test_page_size_must_be_allowed(self):
        with pytest.raises(ValidationError):
            PageState(page_size=7)
        with pytest.raises(ValidationError):
            PageState(page_index=-1)


class TestPurity:
    def test_input_not_mutated_and_deterministic(self, mixed_jobs):
        snapshot = list(mixed_jobs)
        args = (FilterState(gpu="A100"), SortState(key="cost"), PageState(page_size=10))
        first = query(mixed_jobs, *args)
        second = query(mixed_jobs, *args)
        assert mixed_jobs == snapshot
        assert first.model_dump() == second.model_dump()


class TestFilterOptions:
    def test_first_seen_order(self, mixed_jobs):
        opts = filter_options(mixed_jobs)
        assert opts.gpus == ["A100", "T4"]
        assert opts.regions == ["us-east", "eu", "us-west"]
        assert opts.statuses == ["running"]
