"""Job run ledger: one entry per invocation, plus a staleness health check."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from installment_automation.core.config import settings
from installment_automation.core.exceptions import JobLedgerError
from installment_automation.models.job_run import JobRun, JobRunStatus
from installment_automation.repositories.agency_repository import AgencyRepository
from installment_automation.repositories.job_run_repository import JobRunRepository
from installment_automation.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

HEALTHY_WITHIN_HOURS = 24.0
NEVER_RAN_HOURS = 999.0


class HealthLevel:
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class JobHealthStatus:
    ok: bool
    job_name: str
    status: str
    last_run: datetime | None
    last_run_status: str | None
    hours_since_last_run: float
    message: str


@dataclass(frozen=True)
class DailyJobTrend:
    date: date
    runs: int
    successful_runs: int
    failed_runs: int
    total_records_updated: int
    avg_duration_seconds: float


@dataclass(frozen=True)
class JobMetrics:
    job_name: str
    start: datetime
    end: datetime
    days: int
    total_runs: int
    successful_runs: int
    failed_runs: int
    success_rate: float
    total_records_updated: int
    avg_duration_seconds: float
    min_duration_seconds: float
    max_duration_seconds: float
    recent_runs: list[JobRun]
    daily_trend: list[DailyJobTrend]
    health: JobHealthStatus


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def run_duration_seconds(run: JobRun) -> float | None:
    if run.completed_at is None:
        return None
    elapsed = _aware(run.completed_at) - _aware(run.started_at)  # type: ignore[arg-type]
    return elapsed.total_seconds()


def _successful_durations(runs: list[JobRun]) -> list[float]:
    durations = []
    for run in runs:
        if run.status != JobRunStatus.SUCCESS.value:
            continue
        seconds = run_duration_seconds(run)
        if seconds is not None:
            durations.append(seconds)
    return durations


def _average(values: list[float]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


class JobRunService:
    """Wraps the ledger repository with run lifecycle and health semantics."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = JobRunRepository(db)

    def start(self, job_name: str, now: datetime | None = None) -> JobRun:
        """Create the ``running`` entry for a new invocation.

        Raises:
            JobLedgerError: The entry could not be written.
        """
        started_at = now or datetime.now(UTC)
        try:
            return self.repo.create(job_name, started_at)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to create job run entry for %s", job_name)
            raise JobLedgerError(f"Failed to create job log: {exc}") from exc

    def complete(
        self,
        run: JobRun,
        *,
        records_updated: int,
        metadata: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> JobRun:
        return self.repo.finish(
            run,
            status=JobRunStatus.SUCCESS,
            completed_at=now or datetime.now(UTC),
            records_updated=records_updated,
            metadata=metadata,
        )

    def fail(
        self,
        run: JobRun,
        *,
        error_message: str,
        records_updated: int = 0,
        metadata: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> JobRun:
        return self.repo.finish(
            run,
            status=JobRunStatus.FAILED,
            completed_at=now or datetime.now(UTC),
            records_updated=records_updated,
            metadata=metadata,
            error_message=error_message,
        )

    def check_health(self, job_name: str, now: datetime | None = None) -> JobHealthStatus:
        """Classify the job by the age and outcome of its latest run.

        healthy: last run within 24h; warning: within the alert threshold;
        critical: older than that, never ran, last run failed, or a run has
        been stuck in ``running`` past the stuck threshold.
        """
        now = now or datetime.now(UTC)
        threshold = settings.JOB_HEALTH_ALERT_THRESHOLD_HOURS
        latest = self.repo.get_latest(job_name)

        if latest is None:
            return JobHealthStatus(
                ok=False,
                job_name=job_name,
                status=HealthLevel.CRITICAL,
                last_run=None,
                last_run_status=None,
                hours_since_last_run=NEVER_RAN_HOURS,
                message="Job has never run - missed execution detected",
            )

        last_run = _aware(latest.started_at)  # type: ignore[arg-type]
        hours = round((now - last_run).total_seconds() / 3600, 1)
        stuck_before = now - timedelta(minutes=settings.JOB_STUCK_RUNNING_MINUTES)
        stuck = self.repo.get_running_since(job_name, stuck_before)

        if latest.status == JobRunStatus.FAILED.value:
            status = HealthLevel.CRITICAL
            message = f"Last run failed: {latest.error_message or 'unknown error'}"
        elif stuck:
            status = HealthLevel.CRITICAL
            message = (
                f"{len(stuck)} run(s) stuck in running for more than "
                f"{settings.JOB_STUCK_RUNNING_MINUTES} minutes"
            )
        elif hours <= HEALTHY_WITHIN_HOURS:
            status = HealthLevel.HEALTHY
            message = "Job running normally"
        elif hours <= threshold:
            status = HealthLevel.WARNING
            message = "Job slightly delayed but within tolerance"
        else:
            status = HealthLevel.CRITICAL
            message = f"Job has not run in {round(hours)} hours - missed execution detected"

        return JobHealthStatus(
            ok=status != HealthLevel.CRITICAL,
            job_name=job_name,
            status=status,
            last_run=last_run,
            last_run_status=str(latest.status),
            hours_since_last_run=hours,
            message=message,
        )

    def check_and_alert(self, job_name: str, now: datetime | None = None) -> JobHealthStatus:
        """Run the health check and notify every agency's staff when critical."""
        health = self.check_health(job_name, now)
        if health.status != HealthLevel.CRITICAL:
            return health

        logger.error("Job %s health critical: %s", job_name, health.message)
        notifier = NotificationService(self.db)
        detail = (
            f"{health.message}. Last run: "
            f"{health.last_run.isoformat() if health.last_run else 'Never'}"
        )
        for agency in AgencyRepository(self.db).get_all():
            notifier.notify_job_health_alert(
                agency_id=agency.id,  # type: ignore[arg-type]
                job_name=job_name,
                detail=detail,
            )
        return health

    def metrics(
        self,
        job_name: str,
        days: int = 30,
        limit: int = 10,
        now: datetime | None = None,
    ) -> JobMetrics:
        """Aggregate run outcomes, durations and a per-day trend over ``days``.

        Durations only count successful runs that have completed. The daily
        trend is keyed by UTC start date, newest first.
        """
        now = now or datetime.now(UTC)
        start = now - timedelta(days=days)
        summary = self.repo.summarize(job_name, start)
        runs = self.repo.get_since(job_name, start)

        durations = _successful_durations(runs)
        total = summary["total"]
        success_rate = round(summary["successful"] / total * 100, 2) if total else 0.0

        by_day: dict[date, list[JobRun]] = defaultdict(list)
        for run in runs:
            by_day[_aware(run.started_at).date()].append(run)  # type: ignore[arg-type]
        daily_trend = [
            DailyJobTrend(
                date=day,
                runs=len(day_runs),
                successful_runs=sum(
                    1 for r in day_runs if r.status == JobRunStatus.SUCCESS.value
                ),
                failed_runs=sum(1 for r in day_runs if r.status == JobRunStatus.FAILED.value),
                total_records_updated=sum(r.records_updated or 0 for r in day_runs),
                avg_duration_seconds=_average(_successful_durations(day_runs)),
            )
            for day, day_runs in sorted(by_day.items(), reverse=True)
        ]

        return JobMetrics(
            job_name=job_name,
            start=start,
            end=now,
            days=days,
            total_runs=total,
            successful_runs=summary["successful"],
            failed_runs=summary["failed"],
            success_rate=success_rate,
            total_records_updated=summary["records_updated"],
            avg_duration_seconds=_average(durations),
            min_duration_seconds=round(min(durations), 2) if durations else 0.0,
            max_duration_seconds=round(max(durations), 2) if durations else 0.0,
            recent_runs=runs[:limit],
            daily_trend=daily_trend,
            health=self.check_health(job_name, now),
        )
