"""Tests for worker background tasks and cron job registration."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from installment_automation.core import database as db_module
from installment_automation.core.config import settings
from installment_automation.core.database import get_db
from installment_automation.models.installment import InstallmentStatus
from installment_automation.models.job_run import JobRun
from installment_automation.services.installment_automation import AutomationRunResult
from installment_automation.services.job_run_service import HealthLevel, JobHealthStatus
from installment_automation.worker import (
    WorkerSettings,
    check_job_health_task,
    run_installment_automation_task,
)
from tests.conftest import create_installment, create_plan


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def _result(success: bool = True, error: str | None = None) -> AutomationRunResult:
    return AutomationRunResult(
        run_id=None,
        success=success,
        records_updated=2,
        notifications_sent=3,
        notifications_failed=1,
        error=error,
    )


class TestRunInstallmentAutomationTask:
    @pytest.mark.asyncio
    async def test_returns_run_summary(self, db_session):
        mock_service = MagicMock()
        mock_service.run = AsyncMock(return_value=_result())

        with patch(
            "installment_automation.worker.InstallmentAutomationService",
            return_value=mock_service,
        ) as mock_cls:
            result = await run_installment_automation_task({})

        assert result == {
            "success": True,
            "records_updated": 2,
            "notifications_sent": 3,
            "notifications_failed": 1,
        }
        mock_cls.assert_called_once()
        assert mock_cls.call_args[0][0] is not None
        mock_service.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_run_is_logged(self, db_session, caplog):
        mock_service = MagicMock()
        mock_service.run = AsyncMock(return_value=_result(success=False, error="all down"))

        with patch(
            "installment_automation.worker.InstallmentAutomationService",
            return_value=mock_service,
        ):
            result = await run_installment_automation_task({})

        assert result["success"] is False
        assert "Installment automation failed: all down" in caplog.text

    @pytest.mark.asyncio
    async def test_closes_session_on_exception(self, db_session):
        mock_session = MagicMock()
        mock_service = MagicMock()
        mock_service.run = AsyncMock(side_effect=RuntimeError("DB error"))

        with (
            patch("installment_automation.worker.SessionLocal", return_value=mock_session),
            patch(
                "installment_automation.worker.InstallmentAutomationService",
                return_value=mock_service,
            ),
            pytest.raises(RuntimeError, match="DB error"),
        ):
            await run_installment_automation_task({})

        mock_session.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_integration_with_real_service(self, db_session):
        """Without SMTP the run still transitions installments but sends nothing."""
        plan = create_plan(db_session)
        inst = create_installment(
            db_session, plan, due_date=datetime.now(UTC).date() - timedelta(days=2)
        )

        with patch("installment_automation.worker.SessionLocal", db_module.SessionLocal):
            result = await run_installment_automation_task({})

        assert result["success"] is True
        assert result["records_updated"] == 1
        assert result["notifications_sent"] == 0
        db_session.expire_all()
        db_session.refresh(inst)
        assert inst.status == InstallmentStatus.OVERDUE.value
        assert db_session.query(JobRun).count() == 1

    @pytest.mark.asyncio
    async def test_integration_sends_through_smtp(self, db_session):
        plan = create_plan(db_session)
        create_installment(
            db_session, plan, due_date=datetime.now(UTC).date() - timedelta(days=2)
        )

        with (
            patch("installment_automation.worker.SessionLocal", db_module.SessionLocal),
            patch.object(settings, "SMTP_HOST", "smtp.example.test"),
            patch(
                "installment_automation.services.email_service.aiosmtplib.send",
                new_callable=AsyncMock,
            ) as smtp_send,
        ):
            result = await run_installment_automation_task({})

        assert result["notifications_sent"] == 1
        smtp_send.assert_awaited_once()


class TestCheckJobHealthTask:
    @pytest.mark.asyncio
    async def test_returns_health_status(self, db_session):
        mock_service = MagicMock()
        mock_service.check_and_alert.return_value = JobHealthStatus(
            ok=True,
            job_name="update-installment-statuses",
            status=HealthLevel.HEALTHY,
            last_run=datetime.now(UTC),
            last_run_status="success",
            hours_since_last_run=0.5,
            message="Job is healthy",
        )

        with patch("installment_automation.worker.JobRunService", return_value=mock_service):
            result = await check_job_health_task({})

        assert result == HealthLevel.HEALTHY
        mock_service.check_and_alert.assert_called_once_with("update-installment-statuses")

    @pytest.mark.asyncio
    async def test_integration_never_ran_is_critical(self, db_session):
        with patch("installment_automation.worker.SessionLocal", db_module.SessionLocal):
            result = await check_job_health_task({})

        assert result == HealthLevel.CRITICAL


class TestWorkerSettings:
    def test_functions_registered(self):
        func_names = [f.__name__ for f in WorkerSettings.functions]
        assert "run_installment_automation_task" in func_names
        assert "check_job_health_task" in func_names

    def test_automation_cron_runs_daily_at_seven(self):
        job = next(
            j
            for j in WorkerSettings.cron_jobs
            if j.coroutine.__name__ == "run_installment_automation_task"
        )
        assert job.hour == 7
        assert job.minute == 0

    def test_health_cron_runs_hourly(self):
        job = next(
            j for j in WorkerSettings.cron_jobs if j.coroutine.__name__ == "check_job_health_task"
        )
        assert job.hour is None
        assert job.minute == {30}

    def test_redis_settings_configured(self):
        assert WorkerSettings.redis_settings is not None
