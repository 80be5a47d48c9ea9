"""Repository for staff notifications. Every lookup is scoped to an agency."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Query, Session

from installment_automation.models.notification import Notification
from installment_automation.models.shared import generate_uuid


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def _for_agency(self, agency_id: UUID) -> Query[Notification]:
        return self.db.query(Notification).filter(Notification.agency_id == agency_id)

    def create(
        self,
        *,
        agency_id: UUID,
        category: str,
        title: str,
        message: str,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
    ) -> Notification:
        notification = Notification(
            id=generate_uuid(),
            agency_id=agency_id,
            category=category,
            title=title,
            message=message,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def get_by_id(self, notification_id: UUID, agency_id: UUID) -> Notification | None:
        return self._for_agency(agency_id).filter(Notification.id == notification_id).first()

    def get_all(
        self,
        agency_id: UUID,
        skip: int = 0,
        limit: int = 50,
        category: str | None = None,
        is_read: bool | None = None,
    ) -> list[Notification]:
        query = self._for_agency(agency_id)
        if category is not None:
            query = query.filter(Notification.category == category)
        if is_read is not None:
            query = query.filter(Notification.is_read == is_read)
        return query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()

    def find_unread(self, agency_id: UUID, category: str, title: str) -> Notification | None:
        """Latest unread notification with this category and title, if any."""
        return (
            self._for_agency(agency_id)
            .filter(
                Notification.category == category,
                Notification.title == title,
                Notification.is_read == False,  # noqa: E712
            )
            .order_by(Notification.created_at.desc())
            .first()
        )

    def count_unread(self, agency_id: UUID) -> int:
        return self._for_agency(agency_id).filter(Notification.is_read == False).count()  # noqa: E712

    def mark_as_read(self, notification_id: UUID, agency_id: UUID) -> Notification | None:
        notification = self.get_by_id(notification_id, agency_id)
        if notification is None:
            return None
        notification.is_read = True  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(notification)
        return notification
