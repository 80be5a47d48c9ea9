"""Notification model for in-app staff notifications."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from installment_automation.core.database import Base
from installment_automation.models.shared import UUIDType, generate_uuid


class Notification(Base):
    """Notification model - agency-wide in-app notifications for staff."""

    __tablename__ = "notifications"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    agency_id = Column(
        UUIDType,
        ForeignKey("agencies.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    category = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(String(1000), nullable=False)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(UUIDType, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
