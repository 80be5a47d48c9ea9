"""Job run ledger repository."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from installment_automation.models.job_run import JobRun, JobRunStatus


class JobRunRepository:
    """Repository for JobRun (jobs_log) entries."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, job_name: str, started_at: datetime) -> JobRun:
        run = JobRun(
            job_name=job_name,
            started_at=started_at,
            status=JobRunStatus.RUNNING.value,
            records_updated=0,
        )
        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        return run

    def get_by_id(self, run_id: UUID) -> JobRun | None:
        return self.db.query(JobRun).filter(JobRun.id == run_id).first()

    def finish(
        self,
        run: JobRun,
        *,
        status: JobRunStatus,
        completed_at: datetime,
        records_updated: int = 0,
        metadata: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> JobRun:
        """Move a running entry to its terminal status."""
        if run.status != JobRunStatus.RUNNING.value:
            raise ValueError(f"Job run {run.id} is already {run.status}")
        run.status = status.value  # type: ignore[assignment]
        run.completed_at = completed_at  # type: ignore[assignment]
        run.records_updated = records_updated  # type: ignore[assignment]
        run.metadata_ = metadata  # type: ignore[assignment]
        run.error_message = error_message  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(run)
        return run

    def get_latest(self, job_name: str) -> JobRun | None:
        return (
            self.db.query(JobRun)
            .filter(JobRun.job_name == job_name)
            .order_by(JobRun.started_at.desc())
            .first()
        )

    def get_all(
        self,
        skip: int = 0,
        limit: int = 50,
        job_name: str | None = None,
        status: JobRunStatus | None = None,
    ) -> list[JobRun]:
        query = self.db.query(JobRun)
        if job_name is not None:
            query = query.filter(JobRun.job_name == job_name)
        if status is not None:
            query = query.filter(JobRun.status == status.value)
        return query.order_by(JobRun.started_at.desc()).offset(skip).limit(limit).all()

    def get_running_since(self, job_name: str, before: datetime) -> list[JobRun]:
        """Entries still ``running`` that started before ``before``."""
        return (
            self.db.query(JobRun)
            .filter(
                JobRun.job_name == job_name,
                JobRun.status == JobRunStatus.RUNNING.value,
                JobRun.started_at < before,
            )
            .all()
        )

    def get_since(self, job_name: str, since: datetime) -> list[JobRun]:
        """Runs of ``job_name`` started at or after ``since``, newest first."""
        return (
            self.db.query(JobRun)
            .filter(JobRun.job_name == job_name, JobRun.started_at >= since)
            .order_by(JobRun.started_at.desc())
            .all()
        )

    def summarize(self, job_name: str, since: datetime) -> dict[str, int]:
        """Run counts by outcome and records updated over the window."""
        stats: Any = (
            self.db.query(
                func.count(JobRun.id).label("total"),
                func.sum(
                    case((JobRun.status == JobRunStatus.SUCCESS.value, 1), else_=0)
                ).label("successful"),
                func.sum(
                    case((JobRun.status == JobRunStatus.FAILED.value, 1), else_=0)
                ).label("failed"),
                func.coalesce(func.sum(JobRun.records_updated), 0).label("records_updated"),
            )
            .filter(JobRun.job_name == job_name, JobRun.started_at >= since)
            .first()
        )
        return {
            "total": int(stats.total or 0) if stats else 0,
            "successful": int(stats.successful or 0) if stats else 0,
            "failed": int(stats.failed or 0) if stats else 0,
            "records_updated": int(stats.records_updated or 0) if stats else 0,
        }
