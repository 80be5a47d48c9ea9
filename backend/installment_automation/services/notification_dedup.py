"""At-most-once guard for student reminders."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.models.student_notification import (
    NotificationKind,
    StudentNotification,
)
from installment_automation.repositories.student_notification_repository import (
    StudentNotificationRepository,
)

logger = logging.getLogger(__name__)


class NotificationDeduplicator:
    """Decides whether a reminder for (installment, kind) may be delivered.

    ``should_send`` is a cheap pre-check. ``claim`` is authoritative: it
    inserts the pending record before delivery, and the unique constraint
    turns a lost race into ``None``.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = StudentNotificationRepository(db)

    def should_send(self, installment_id: UUID, kind: NotificationKind) -> bool:
        return self.repo.get_by_installment_and_kind(installment_id, kind) is None

    def claim(
        self,
        *,
        agency_id: UUID,
        installment_id: UUID,
        student_id: UUID,
        kind: NotificationKind,
    ) -> StudentNotification | None:
        if not self.should_send(installment_id, kind):
            return None
        record = self.repo.create_pending(
            agency_id=agency_id,
            installment_id=installment_id,
            student_id=student_id,
            kind=kind,
        )
        if record is None:
            logger.info(
                "%s reminder for installment %s already claimed by another run",
                kind.value,
                installment_id,
            )
        return record
