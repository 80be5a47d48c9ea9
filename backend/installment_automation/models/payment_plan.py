"""Payment plan model - aggregates the installments of one enrollment."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text, func

from installment_automation.core.database import Base
from installment_automation.models.shared import UUIDType, generate_uuid


class PaymentPlanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentPlan(Base):
    """PaymentPlan model.

    ``expected_commission`` is fixed at creation (rate x total).
    ``earned_commission`` and ``status`` are only written by CommissionService.
    """

    __tablename__ = "payment_plans"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    agency_id = Column(
        UUIDType, ForeignKey("agencies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    student_id = Column(
        UUIDType, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    total_amount = Column(Numeric(12, 2), nullable=False)
    commission_rate = Column(Numeric(5, 4), nullable=False, default=0)
    expected_commission = Column(Numeric(12, 2), nullable=False, default=0)
    earned_commission = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=PaymentPlanStatus.ACTIVE.value, index=True)
    payment_instructions = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
