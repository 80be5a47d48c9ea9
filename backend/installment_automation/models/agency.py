from sqlalchemy import Column, DateTime, Integer, String, Time, func

from installment_automation.core.database import Base
from installment_automation.models.shared import UUIDType, generate_uuid


class Agency(Base):
    """Agency (tenant) with its status automation settings.

    ``timezone``, ``overdue_cutoff_time`` and ``due_soon_threshold_days`` may be
    null; ``AgencySettings.from_agency`` applies the defaults.
    """

    __tablename__ = "agencies"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    timezone = Column(String(64), nullable=True, default="UTC")
    overdue_cutoff_time = Column(Time, nullable=True)
    due_soon_threshold_days = Column(Integer, nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
