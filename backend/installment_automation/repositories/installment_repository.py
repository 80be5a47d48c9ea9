"""Installment repository: tenant-scoped, set-based reads and updates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import exists, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from installment_automation.models.installment import Installment, InstallmentStatus
from installment_automation.models.payment_plan import PaymentPlan, PaymentPlanStatus
from installment_automation.models.student import Student
from installment_automation.models.student_notification import (
    NotificationKind,
    StudentNotification,
)
from installment_automation.repositories.audit_log_repository import AuditLogRepository
from installment_automation.services.installment_status import evaluate_transition
from installment_automation.services.tenant_clock import TenantTime

logger = logging.getLogger(__name__)

PENDING_TO_OVERDUE = "pending_to_overdue"


@dataclass
class TransitionBatchResult:
    """Outcome of one tenant's transition batch."""

    agency_id: UUID
    updated_count: int = 0
    transitions: dict[str, int] = field(default_factory=lambda: {PENDING_TO_OVERDUE: 0})
    installment_ids: list[UUID] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agency_id": str(self.agency_id),
            "updated_count": self.updated_count,
            "transitions": dict(self.transitions),
        }


class InstallmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self, installment_id: UUID, agency_id: UUID | None = None
    ) -> Installment | None:
        query = self.db.query(Installment).filter(Installment.id == installment_id)
        if agency_id is not None:
            query = query.filter(Installment.agency_id == agency_id)
        return query.first()

    def get_by_plan(self, plan_id: UUID) -> list[Installment]:
        return (
            self.db.query(Installment)
            .filter(Installment.payment_plan_id == plan_id)
            .order_by(Installment.installment_number.asc())
            .all()
        )

    def get_all(
        self,
        agency_id: UUID,
        skip: int = 0,
        limit: int = 100,
        status: InstallmentStatus | None = None,
        payment_plan_id: UUID | None = None,
    ) -> list[Installment]:
        query = self.db.query(Installment).filter(Installment.agency_id == agency_id)
        if status is not None:
            query = query.filter(Installment.status == status.value)
        if payment_plan_id is not None:
            query = query.filter(Installment.payment_plan_id == payment_plan_id)
        return (
            query.order_by(Installment.due_date.asc(), Installment.installment_number.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def transition_due_installments(
        self, agency_id: UUID, tenant_time: TenantTime
    ) -> TransitionBatchResult:
        """Mark this tenant's due pending installments as overdue.

        Candidates are pending installments on active plans. The update is a
        single statement guarded by ``status = 'pending'`` and is committed
        together with its audit entries, so a repeat call updates nothing and a
        failure leaves nothing behind.
        """
        result = TransitionBatchResult(agency_id=agency_id)
        try:
            candidates = (
                self.db.query(Installment.id, Installment.due_date, Installment.status)
                .join(PaymentPlan, Installment.payment_plan_id == PaymentPlan.id)
                .filter(
                    Installment.agency_id == agency_id,
                    PaymentPlan.agency_id == agency_id,
                    PaymentPlan.status == PaymentPlanStatus.ACTIVE.value,
                    Installment.status == InstallmentStatus.PENDING.value,
                )
                .all()
            )
            due_ids = [
                row.id
                for row in candidates
                if evaluate_transition(row.due_date, row.status, tenant_time) is not None
            ]
            if due_ids:
                stmt = (
                    update(Installment)
                    .where(
                        Installment.id.in_(due_ids),
                        Installment.status == InstallmentStatus.PENDING.value,
                    )
                    .values(status=InstallmentStatus.OVERDUE.value)
                    .returning(Installment.id)
                    .execution_options(synchronize_session=False)
                )
                updated_ids = list(self.db.execute(stmt).scalars().all())

                audit_repo = AuditLogRepository(self.db)
                for installment_id in updated_ids:
                    audit_repo.create(
                        agency_id=agency_id,
                        resource_type="installment",
                        resource_id=installment_id,
                        action="marked_overdue",
                        changes={
                            "status": {
                                "old": InstallmentStatus.PENDING.value,
                                "new": InstallmentStatus.OVERDUE.value,
                            }
                        },
                        actor_type="system",
                        metadata={"local_date": tenant_time.local_date.isoformat()},
                    )
                result.installment_ids = updated_ids
                result.updated_count = len(updated_ids)
                result.transitions[PENDING_TO_OVERDUE] = len(updated_ids)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        # Loaded instances may still hold the pre-update status
        self.db.expire_all()
        logger.debug(
            "Agency %s: %d installment(s) marked overdue", agency_id, result.updated_count
        )
        return result

    def get_due_soon_candidates(
        self, agency_id: UUID, due_date: date
    ) -> list[tuple[Installment, PaymentPlan, Student]]:
        """Pending installments on active plans due on ``due_date``."""
        rows = (
            self.db.query(Installment, PaymentPlan, Student)
            .join(PaymentPlan, Installment.payment_plan_id == PaymentPlan.id)
            .join(Student, PaymentPlan.student_id == Student.id)
            .filter(
                Installment.agency_id == agency_id,
                PaymentPlan.status == PaymentPlanStatus.ACTIVE.value,
                Installment.status == InstallmentStatus.PENDING.value,
                Installment.due_date == due_date,
            )
            .order_by(Installment.due_date.asc(), Installment.installment_number.asc())
            .all()
        )
        return [(row[0], row[1], row[2]) for row in rows]

    def get_overdue_unnotified(
        self, agency_id: UUID
    ) -> list[tuple[Installment, PaymentPlan, Student]]:
        """Overdue installments on active plans with no overdue record yet."""
        already_notified = exists().where(
            StudentNotification.installment_id == Installment.id,
            StudentNotification.notification_type == NotificationKind.OVERDUE.value,
        )
        rows = (
            self.db.query(Installment, PaymentPlan, Student)
            .join(PaymentPlan, Installment.payment_plan_id == PaymentPlan.id)
            .join(Student, PaymentPlan.student_id == Student.id)
            .filter(
                Installment.agency_id == agency_id,
                PaymentPlan.status == PaymentPlanStatus.ACTIVE.value,
                Installment.status == InstallmentStatus.OVERDUE.value,
                ~already_notified,
            )
            .order_by(Installment.due_date.asc(), Installment.installment_number.asc())
            .all()
        )
        return [(row[0], row[1], row[2]) for row in rows]

    def get_due_within(self, agency_id: UUID, from_date: date, days: int) -> list[Installment]:
        """Pending installments due between ``from_date`` and ``from_date + days``."""
        return (
            self.db.query(Installment)
            .filter(
                Installment.agency_id == agency_id,
                Installment.status == InstallmentStatus.PENDING.value,
                Installment.due_date >= from_date,
                Installment.due_date <= from_date + timedelta(days=days),
            )
            .order_by(Installment.due_date.asc())
            .all()
        )

    def apply_payment(
        self,
        installment: Installment,
        *,
        paid_amount: Decimal,
        paid_date: date,
        status: InstallmentStatus,
        notes: str | None,
    ) -> Installment:
        """Write payment fields. Flushes only; the caller commits."""
        installment.paid_amount = paid_amount  # type: ignore[assignment]
        installment.paid_date = paid_date  # type: ignore[assignment]
        installment.status = status.value  # type: ignore[assignment]
        installment.payment_notes = notes  # type: ignore[assignment]
        self.db.flush()
        return installment
