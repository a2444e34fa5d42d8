"""Data models for the GPU job engine.

The engine owns a *stable* normalized Job schema regardless of which provider
produced the records. Provider fields that the engine does not interpret are
kept verbatim in `metadata`.

This file uses Pydantic v2.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


JobStatus = Literal[
    "running",
    "completed",
    "failed",
    "queued",
    "cancelled",
]

SortKey = Literal[
    "id",
    "gpu",
    "region",
    "cost",
    "status",
    "runtime",
    "created_at",
]

TimeWindow = Literal["7d", "30d", "90d"]

PAGE_SIZE_OPTIONS = (10, 20, 30, 40, 50)
DEFAULT_PAGE_SIZE = 20

# Raw form input: strings from text boxes, or numbers from programmatic callers.
RawNumber = Union[str, int, float, None]


class Job(BaseModel):
    """A normalized GPU rental job.

    Jobs are immutable. The engine never rewrites them; it only filters, orders
    and counts them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Provider identifier, unique within a snapshot.")
    gpu: str
    region: str
    cost: float = Field(..., ge=0, description="Hourly rate in currency units.")
    status: JobStatus
    runtime: int = Field(..., ge=0, description="Elapsed seconds.")
    created_at: datetime = Field(..., alias="createdAt", description="Job start time (UTC).")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Provider fields passed through.")

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class CostRange(BaseModel):
    min: RawNumber = None
    max: RawNumber = None


class DurationInput(BaseModel):
    """An h/m/s group as typed into a form; any part may be blank."""

    hours: RawNumber = None
    minutes: RawNumber = None
    seconds: RawNumber = None


class RuntimeRange(BaseModel):
    min: Optional[DurationInput] = None
    max: Optional[DurationInput] = None


class FilterState(BaseModel):
    """Active filters for one table session. Unset fields do not constrain."""

    gpu: Optional[str] = None
    region: Optional[str] = None
    status: Optional[str] = None
    cost: CostRange = Field(default_factory=CostRange)
    runtime: RuntimeRange = Field(default_factory=RuntimeRange)


class SortState(BaseModel):
    key: SortKey = "created_at"
    descending: bool = True


class PageState(BaseModel):
    page_index: int = Field(default=0, ge=0)
    page_size: int = DEFAULT_PAGE_SIZE

    @field_validator("page_size")
    @classmethod
    def _allowed_size(cls, value: int) -> int:
        if value not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"page_size must be one of {PAGE_SIZE_OPTIONS}, got {value}")
        return value


class PageResult(BaseModel):
    """One page of a query plus the counts needed for 'showing N of M'."""

    rows: List[Job]
    total_filtered: int
    total_all: int
    page_size: int = DEFAULT_PAGE_SIZE

    @computed_field  # type: ignore[prop-decorator]
    @property
    def page_count(self) -> int:
        return -(-self.total_filtered // self.page_size)


class FilterOptions(BaseModel):
    gpus: List[str] = Field(default_factory=list)
    regions: List[str] = Field(default_factory=list)
    statuses: List[str] = Field(default_factory=list)


class DayCount(BaseModel):
    day: str
    count: int


class RegionCost(BaseModel):
    region: str
    cost: float


class GpuFrequency(BaseModel):
    gpu: str
    count: int


class RegionCount(BaseModel):
    region: str
    count: int


class AnalyticsSummary(BaseModel):
    """Windowed analytics over a job snapshot. Always built fresh."""

    has_data: Literal[True] = True
    window: TimeWindow
    generated_at: datetime
    series_by_day: List[DayCount]
    cost_by_region: List[RegionCost]
    frequency_by_gpu: List[GpuFrequency]
    total_jobs: int
    total_cost: float
    average_runtime_seconds: int
    top_regions: List[RegionCount]


class EmptyAnalytics(BaseModel):
    """Returned instead of a summary when no job falls inside the window."""

    has_data: Literal[False] = False
    window: TimeWindow
    generated_at: datetime
    total_jobs: int = 0
    total_cost: float = 0.0
    average_runtime_seconds: int = 0


class GroupRollup(BaseModel):
    key: str
    count: int = 0
    total_cost: float = 0.0
    average_runtime: float = 0.0
