"""Repository for StudentNotification records."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from installment_automation.models.shared import generate_uuid
from installment_automation.models.student_notification import (
    DeliveryStatus,
    NotificationKind,
    StudentNotification,
)


class StudentNotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_installment_and_kind(
        self, installment_id: UUID, kind: NotificationKind
    ) -> StudentNotification | None:
        return (
            self.db.query(StudentNotification)
            .filter(
                StudentNotification.installment_id == installment_id,
                StudentNotification.notification_type == kind.value,
            )
            .first()
        )

    def create_pending(
        self,
        *,
        agency_id: UUID,
        installment_id: UUID,
        student_id: UUID,
        kind: NotificationKind,
    ) -> StudentNotification | None:
        """Insert a pending record, or return None if one already exists.

        The (installment_id, notification_type) unique constraint decides the
        race between concurrent runs; the loser gets None.
        """
        record = StudentNotification(
            id=generate_uuid(),
            agency_id=agency_id,
            installment_id=installment_id,
            student_id=student_id,
            notification_type=kind.value,
            delivery_status=DeliveryStatus.PENDING.value,
            attempts=0,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(record)
        return record

    def finalize(
        self,
        record: StudentNotification,
        *,
        status: DeliveryStatus,
        attempts: int,
        error_message: str | None = None,
        sent_at: datetime | None = None,
    ) -> StudentNotification:
        record.delivery_status = status.value  # type: ignore[assignment]
        record.attempts = attempts  # type: ignore[assignment]
        record.error_message = error_message[:1000] if error_message else None  # type: ignore[assignment]
        record.sent_at = sent_at  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(record)
        return record

    def get_all(
        self,
        agency_id: UUID,
        skip: int = 0,
        limit: int = 100,
        installment_id: UUID | None = None,
        delivery_status: DeliveryStatus | None = None,
    ) -> list[StudentNotification]:
        query = self.db.query(StudentNotification).filter(
            StudentNotification.agency_id == agency_id
        )
        if installment_id is not None:
            query = query.filter(StudentNotification.installment_id == installment_id)
        if delivery_status is not None:
            query = query.filter(StudentNotification.delivery_status == delivery_status.value)
        return (
            query.order_by(StudentNotification.created_at.desc()).offset(skip).limit(limit).all()
        )
