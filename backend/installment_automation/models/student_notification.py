"""StudentNotification model - evidence that a reminder was attempted."""

from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from installment_automation.core.database import Base
from installment_automation.models.shared import UUIDType, generate_uuid


class NotificationKind(str, Enum):
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class StudentNotification(Base):
    """One row per (installment, kind).

    The unique constraint is what prevents two runs from notifying twice.
    """

    __tablename__ = "student_notifications"
    __table_args__ = (
        UniqueConstraint(
            "installment_id",
            "notification_type",
            name="uq_student_notifications_installment_type",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    agency_id = Column(
        UUIDType, ForeignKey("agencies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    installment_id = Column(
        UUIDType, ForeignKey("installments.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    student_id = Column(
        UUIDType, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    notification_type = Column(String(20), nullable=False)
    delivery_status = Column(String(20), nullable=False, default=DeliveryStatus.PENDING.value)
    attempts = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
