"""Automation job API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from installment_automation.core.auth import api_key_matches
from installment_automation.core.config import settings
from installment_automation.core.database import get_db
from installment_automation.core.exceptions import JobLedgerError
from installment_automation.models.job_run import JobRunStatus
from installment_automation.repositories.job_run_repository import JobRunRepository
from installment_automation.schemas.job_run import (
    AgencyTransitionSummary,
    AutomationRunResponse,
    DailyTrendEntry,
    JobHealthResponse,
    JobMetricsResponse,
    JobRunResponse,
    MetricsPerformance,
    MetricsSummary,
    MetricsTimeRange,
    RecentExecution,
)
from installment_automation.services.delivery_executor import (
    NotificationTransport,
    SmtpTransport,
)
from installment_automation.services.installment_automation import (
    JOB_NAME,
    AutomationRunResult,
    InstallmentAutomationService,
)
from installment_automation.services.job_run_service import (
    JobHealthStatus,
    JobRunService,
    run_duration_seconds,
)

router = APIRouter()


def get_notification_transport() -> NotificationTransport | None:
    """SMTP transport, or None while SMTP is unconfigured so reminders are held back."""
    return SmtpTransport() if settings.smtp_enabled else None


def _run_response(result: AutomationRunResult) -> dict[str, Any]:
    body = AutomationRunResponse(
        success=result.success,
        records_updated=result.records_updated,
        notifications_created=result.notifications_created,
        notifications_sent=result.notifications_sent,
        notifications_failed=result.notifications_failed,
        agencies=[
            AgencyTransitionSummary(
                agency_id=batch.agency_id,
                updated_count=batch.updated_count,
                transitions=batch.transitions,
            )
            for batch in result.agencies
        ],
        errors=result.errors or None,
        error=result.error,
    )
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


def _health_response(health: JobHealthStatus) -> JobHealthResponse:
    return JobHealthResponse(
        ok=health.ok,
        job_name=health.job_name,
        status=health.status,
        last_run=health.last_run,
        last_run_status=health.last_run_status,
        hours_since_last_run=health.hours_since_last_run,
        message=health.message,
    )


@router.post(
    "/update-installment-statuses",
    response_model=AutomationRunResponse,
    summary="Run installment status automation",
    responses={
        401: {"description": "Missing or invalid X-API-Key"},
        500: {"description": "Run failed"},
    },
)
async def update_installment_statuses(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    db: Session = Depends(get_db),
    transport: NotificationTransport | None = Depends(get_notification_transport),
) -> JSONResponse:
    """Transition due installments and send reminders for every agency."""
    if not api_key_matches(x_api_key, settings.FUNCTION_API_KEY):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    service = InstallmentAutomationService(db, transport=transport)
    try:
        result = await service.run()
    except JobLedgerError as exc:
        return JSONResponse(status_code=500, content={"success": False, "error": exc.message})

    return JSONResponse(
        status_code=200 if result.success else 500,
        content=_run_response(result),
    )


@router.get(
    "/runs",
    response_model=list[JobRunResponse],
    summary="List job runs",
)
async def list_job_runs(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    job_name: str | None = None,
    status: JobRunStatus | None = None,
    db: Session = Depends(get_db),
) -> list[JobRunResponse]:
    repo = JobRunRepository(db)
    runs = repo.get_all(skip=skip, limit=limit, job_name=job_name, status=status)
    return [JobRunResponse.model_validate(run) for run in runs]


@router.get(
    "/health",
    response_model=JobHealthResponse,
    summary="Check automation job health",
    responses={503: {"description": "Job missed its schedule, failed or is stuck"}},
)
async def job_health(
    job_name: str = Query(default=JOB_NAME),
    db: Session = Depends(get_db),
) -> JSONResponse:
    health = JobRunService(db).check_health(job_name)
    return JSONResponse(
        status_code=200 if health.ok else 503,
        content=_health_response(health).model_dump(mode="json", by_alias=True),
    )


@router.get(
    "/metrics",
    response_model=JobMetricsResponse,
    response_model_by_alias=True,
    summary="Job run metrics over a time window",
)
async def job_metrics(
    job_name: str = Query(default=JOB_NAME),
    days: int = Query(default=30, ge=1, le=365),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> JobMetricsResponse:
    metrics = JobRunService(db).metrics(job_name, days=days, limit=limit)
    return JobMetricsResponse(
        job_name=metrics.job_name,
        time_range=MetricsTimeRange(start=metrics.start, end=metrics.end, days=metrics.days),
        summary=MetricsSummary(
            total_runs=metrics.total_runs,
            successful_runs=metrics.successful_runs,
            failed_runs=metrics.failed_runs,
            success_rate=metrics.success_rate,
            total_records_updated=metrics.total_records_updated,
        ),
        performance=MetricsPerformance(
            avg_duration_seconds=metrics.avg_duration_seconds,
            min_duration_seconds=metrics.min_duration_seconds,
            max_duration_seconds=metrics.max_duration_seconds,
        ),
        recent_executions=[
            RecentExecution(
                id=run.id,
                started_at=run.started_at,
                completed_at=run.completed_at,
                duration_seconds=run_duration_seconds(run),
                records_updated=run.records_updated,
                status=run.status,
                error_message=run.error_message,
            )
            for run in metrics.recent_runs
        ],
        daily_trend=[
            DailyTrendEntry(
                day=entry.date,
                runs=entry.runs,
                successful_runs=entry.successful_runs,
                failed_runs=entry.failed_runs,
                total_records_updated=entry.total_records_updated,
                avg_duration_seconds=entry.avg_duration_seconds,
            )
            for entry in metrics.daily_trend
        ],
        health_status=_health_response(metrics.health),
    )
