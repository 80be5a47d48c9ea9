"""Service for creating in-app staff notifications."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.models.notification import Notification
from installment_automation.repositories.notification_repository import NotificationRepository

# Notification categories
CATEGORY_INSTALLMENT = "installment"
CATEGORY_SYSTEM = "system"


class NotificationService:
    """Service for creating in-app notifications from system events."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository(db)

    def notify(
        self,
        *,
        agency_id: UUID,
        category: str,
        title: str,
        message: str,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
    ) -> Notification:
        """Create a notification."""
        return self.repo.create(
            agency_id=agency_id,
            category=category,
            title=title,
            message=message,
            resource_type=resource_type,
            resource_id=resource_id,
        )

    def notify_installment_overdue(
        self,
        *,
        agency_id: UUID,
        student_name: str,
        amount: Decimal,
        due_date: date,
        installment_id: UUID,
    ) -> Notification:
        """Create a notification when an installment becomes overdue."""
        return self.notify(
            agency_id=agency_id,
            category=CATEGORY_INSTALLMENT,
            title="Installment overdue",
            message=(
                f"Payment of ${amount:.2f} from {student_name} "
                f"was due on {due_date.isoformat()} and is now overdue."
            ),
            resource_type="installment",
            resource_id=installment_id,
        )

    def notify_job_health_alert(
        self,
        *,
        agency_id: UUID,
        job_name: str,
        detail: str,
    ) -> Notification:
        """Create a notification when the automation job is unhealthy.

        While an earlier alert for the same job is still unread, it is updated
        in place instead of adding another one every hour.
        """
        title = f"Job '{job_name}' needs attention"
        existing = self.repo.find_unread(agency_id, CATEGORY_SYSTEM, title)
        if existing is not None:
            existing.message = detail  # type: ignore[assignment]
            self.db.commit()
            self.db.refresh(existing)
            return existing
        return self.notify(
            agency_id=agency_id,
            category=CATEGORY_SYSTEM,
            title=title,
            message=detail,
            resource_type="job",
        )
