import logging
from typing import Any

from arq import cron

from installment_automation.core.database import SessionLocal
from installment_automation.services.installment_automation import (
    JOB_NAME,
    InstallmentAutomationService,
)
from installment_automation.services.job_run_service import JobRunService
from installment_automation.tasks import redis_settings

logger = logging.getLogger(__name__)


async def run_installment_automation_task(ctx: dict[str, Any]) -> dict[str, Any]:
    """Background task: mark due installments overdue and send reminders.

    Runs daily at 07:00 UTC.
    """
    db = SessionLocal()
    try:
        service = InstallmentAutomationService(db)
        result = await service.run()
        if not result.success:
            logger.error("Installment automation failed: %s", result.error)
        return {
            "success": result.success,
            "records_updated": result.records_updated,
            "notifications_sent": result.notifications_sent,
            "notifications_failed": result.notifications_failed,
        }
    finally:
        db.close()


async def check_job_health_task(ctx: dict[str, Any]) -> str:
    """Background task: alert staff when the automation job missed its schedule.

    Runs hourly.
    """
    db = SessionLocal()
    try:
        health = JobRunService(db).check_and_alert(JOB_NAME)
        return health.status
    finally:
        db.close()


class WorkerSettings:
    functions = [
        run_installment_automation_task,
        check_job_health_task,
    ]
    cron_jobs = [
        cron(run_installment_automation_task, hour=7, minute=0),  # daily at 07:00 UTC
        cron(check_job_health_task, minute={30}),  # hourly
    ]
    redis_settings = redis_settings
