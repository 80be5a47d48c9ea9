"""Scheduled installment automation: status transitions and reminders.

One invocation:

1. opens a ``running`` ledger entry,
2. per agency, resolves the tenant clock and marks due installments overdue,
3. emails overdue reminders (and tells staff in-app),
4. emails due-soon reminders for installments due on the local tomorrow,
5. closes the ledger entry with the per-agency breakdown.

A failing agency is recorded and skipped; the others still run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.core.config import settings
from installment_automation.core.exceptions import RecordDecodeError
from installment_automation.models.agency import Agency
from installment_automation.models.installment import Installment
from installment_automation.models.student_notification import DeliveryStatus
from installment_automation.repositories.agency_repository import AgencyRepository
from installment_automation.repositories.installment_repository import (
    InstallmentRepository,
    TransitionBatchResult,
)
from installment_automation.repositories.student_notification_repository import (
    StudentNotificationRepository,
)
from installment_automation.services.delivery_executor import (
    DeliveryExecutor,
    DeliveryOutcome,
    NotificationTransport,
    SmtpTransport,
)
from installment_automation.services.job_run_service import JobRunService
from installment_automation.services.notification_dedup import NotificationDeduplicator
from installment_automation.services.notification_service import NotificationService
from installment_automation.services.reminder_messages import (
    ReminderMessage,
    build_due_soon_message,
    build_overdue_message,
)
from installment_automation.services.retry import RetryPolicy, Sleeper, call_with_retry
from installment_automation.services.tenant_clock import (
    AgencySettings,
    TenantTime,
    resolve_tenant_time,
)

logger = logging.getLogger(__name__)

JOB_NAME = "update-installment-statuses"


@dataclass
class AutomationRunResult:
    run_id: UUID | None = None
    success: bool = True
    records_updated: int = 0
    notifications_created: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    notifications_skipped: int = 0
    agencies: list[TransitionBatchResult] = field(default_factory=list)
    agency_errors: dict[str, str] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    error: str | None = None

    def to_metadata(self) -> dict[str, Any]:
        """Per-agency breakdown stored on the ledger entry."""
        return {
            "agencies": [batch.to_dict() for batch in self.agencies],
            "agency_errors": dict(self.agency_errors),
            "notifications": {
                "created": self.notifications_created,
                "sent": self.notifications_sent,
                "failed": self.notifications_failed,
                "skipped": self.notifications_skipped,
            },
            "errors": list(self.errors),
        }


class InstallmentAutomationService:
    def __init__(
        self,
        db: Session,
        transport: NotificationTransport | None = None,
        policy: RetryPolicy | None = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.db = db
        self.policy = policy or RetryPolicy.from_settings()
        self.sleep = sleep
        if transport is None and settings.smtp_enabled:
            transport = SmtpTransport()
        self.executor = (
            DeliveryExecutor(transport, self.policy, sleep) if transport is not None else None
        )
        self.job_runs = JobRunService(db)
        self.agency_repo = AgencyRepository(db)
        self.installment_repo = InstallmentRepository(db)
        self.record_repo = StudentNotificationRepository(db)
        self.dedup = NotificationDeduplicator(db)
        self.staff_notifier = NotificationService(db)

    async def run(self, now: datetime | None = None) -> AutomationRunResult:
        """Run the pipeline once for every agency.

        Raises:
            JobLedgerError: The ledger entry could not be created; nothing ran.
        """
        now = now or datetime.now(UTC)
        job_run = self.job_runs.start(JOB_NAME, now)
        result = AutomationRunResult(run_id=job_run.id)  # type: ignore[arg-type]
        if self.executor is None:
            logger.warning("No reminder transport configured; reminders are not sent this run")
            result.errors.append("Reminders skipped: no delivery transport configured")

        try:
            agencies = self.agency_repo.get_all()
            for agency in agencies:
                await self._process_agency(agency, now, result)

            if agencies and len(result.agency_errors) == len(agencies):
                result.success = False
                result.error = "Status update failed for every agency"
                self.job_runs.fail(
                    job_run,
                    error_message=result.error,
                    metadata=result.to_metadata(),
                )
            else:
                self.job_runs.complete(
                    job_run,
                    records_updated=result.records_updated,
                    metadata=result.to_metadata(),
                )
        except Exception as exc:
            self.db.rollback()
            logger.exception("Installment automation run %s failed", job_run.id)
            result.success = False
            result.error = str(exc)
            self.job_runs.fail(
                job_run,
                error_message=str(exc),
                records_updated=result.records_updated,
                metadata=result.to_metadata(),
            )
            return result

        logger.info(
            "Installment automation run %s: %d updated, %d sent, %d failed, %d agency error(s)",
            job_run.id,
            result.records_updated,
            result.notifications_sent,
            result.notifications_failed,
            len(result.agency_errors),
        )
        return result

    async def _process_agency(
        self, agency: Agency, now: datetime, result: AutomationRunResult
    ) -> None:
        agency_id: UUID = agency.id  # type: ignore[assignment]
        try:
            tenant_time = resolve_tenant_time(AgencySettings.from_agency(agency), now)

            async def transition() -> TransitionBatchResult:
                return self.installment_repo.transition_due_installments(agency_id, tenant_time)

            batch = await call_with_retry(transition, self.policy, self.sleep)
        except Exception as exc:
            logger.exception("Status update failed for agency %s", agency_id)
            result.agency_errors[str(agency_id)] = str(exc)
            result.errors.append(f"Agency {agency_id}: {exc}")
            return

        result.agencies.append(batch)
        result.records_updated += batch.updated_count

        if self.executor is None:
            return

        try:
            await self._send_overdue_reminders(agency, result)
            await self._send_due_soon_reminders(agency, tenant_time, result)
        except Exception as exc:
            self.db.rollback()
            logger.exception("Reminder processing failed for agency %s", agency_id)
            result.errors.append(f"Agency {agency_id} reminders: {exc}")

    async def _deliver(
        self, message: ReminderMessage, result: AutomationRunResult
    ) -> DeliveryOutcome | None:
        """Claim, deliver and finalize one reminder. None when already claimed."""
        record = self.dedup.claim(
            agency_id=message.agency_id,
            installment_id=message.installment_id,
            student_id=message.student_id,
            kind=message.kind,
        )
        if record is None:
            result.notifications_skipped += 1
            return None
        result.notifications_created += 1

        outcome = await self.executor.deliver(message)  # type: ignore[union-attr]
        self.record_repo.finalize(
            record,
            status=outcome.status,
            attempts=outcome.attempts,
            error_message=outcome.error,
            sent_at=datetime.now(UTC) if outcome.status == DeliveryStatus.SENT else None,
        )
        if outcome.sent:
            result.notifications_sent += 1
        else:
            result.notifications_failed += 1
            result.errors.append(f"Installment {message.installment_id}: {outcome.error}")
        return outcome

    async def _send_overdue_reminders(self, agency: Agency, result: AutomationRunResult) -> None:
        candidates = self.installment_repo.get_overdue_unnotified(agency.id)  # type: ignore[arg-type]
        for installment, plan, student in candidates:
            try:
                message = build_overdue_message(installment, plan, student, agency)
            except RecordDecodeError as exc:
                self._record_decode_failure(installment, exc, result)
                continue

            outcome = await self._deliver(message, result)
            if outcome is None:
                continue
            self.staff_notifier.notify_installment_overdue(
                agency_id=agency.id,  # type: ignore[arg-type]
                student_name=str(student.full_name),
                amount=installment.outstanding_amount,
                due_date=installment.due_date,  # type: ignore[arg-type]
                installment_id=installment.id,  # type: ignore[arg-type]
            )

    async def _send_due_soon_reminders(
        self, agency: Agency, tenant_time: TenantTime, result: AutomationRunResult
    ) -> None:
        candidates = self.installment_repo.get_due_soon_candidates(
            agency.id,  # type: ignore[arg-type]
            tenant_time.due_soon_date,
        )
        for installment, plan, student in candidates:
            if not student.accepts_email:
                logger.debug(
                    "Skipping installment %s: student prefers %s",
                    installment.id,
                    student.contact_preference,
                )
                result.notifications_skipped += 1
                continue
            try:
                message = build_due_soon_message(installment, plan, student, agency)
            except RecordDecodeError as exc:
                self._record_decode_failure(installment, exc, result)
                continue
            await self._deliver(message, result)

    @staticmethod
    def _record_decode_failure(
        installment: Installment, exc: RecordDecodeError, result: AutomationRunResult
    ) -> None:
        logger.warning("Skipping installment %s: %s", installment.id, exc)
        result.notifications_failed += 1
        result.errors.append(str(exc))
