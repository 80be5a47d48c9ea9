"""Pydantic schemas for job runs and the automation trigger."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AgencyTransitionSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    agency_id: UUID
    updated_count: int
    transitions: dict[str, int]


class AutomationRunResponse(BaseModel):
    """Body returned by the scheduler-facing trigger endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    records_updated: int
    notifications_created: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    agencies: list[AgencyTransitionSummary] = Field(default_factory=list)
    errors: list[str] | None = None
    error: str | None = None


class JobRunResponse(BaseModel):
    id: UUID
    job_name: str
    started_at: datetime
    completed_at: datetime | None
    status: str
    records_updated: int
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="metadata_")
    error_message: str | None

    model_config = {"from_attributes": True}


class JobHealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool
    job_name: str
    status: str
    last_run: datetime | None
    last_run_status: str | None
    hours_since_last_run: float
    message: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MetricsTimeRange(_CamelModel):
    start: datetime
    end: datetime
    days: int


class MetricsSummary(_CamelModel):
    total_runs: int
    successful_runs: int
    failed_runs: int
    success_rate: float
    total_records_updated: int


class MetricsPerformance(_CamelModel):
    avg_duration_seconds: float
    min_duration_seconds: float
    max_duration_seconds: float


class RecentExecution(_CamelModel):
    id: UUID
    started_at: datetime
    completed_at: datetime | None
    duration_seconds: float | None
    records_updated: int
    status: str
    error_message: str | None


class DailyTrendEntry(_CamelModel):
    day: date = Field(alias="date")
    runs: int
    successful_runs: int
    failed_runs: int
    total_records_updated: int
    avg_duration_seconds: float


class JobMetricsResponse(_CamelModel):
    job_name: str
    time_range: MetricsTimeRange
    summary: MetricsSummary
    performance: MetricsPerformance
    recent_executions: list[RecentExecution]
    daily_trend: list[DailyTrendEntry]
    health_status: JobHealthResponse
