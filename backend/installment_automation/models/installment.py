"""Installment model - one scheduled payment obligation under a payment plan."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from installment_automation.core.database import Base
from installment_automation.models.shared import UUIDType, generate_uuid

OVERPAYMENT_TOLERANCE = Decimal("1.10")


class InstallmentStatus(str, Enum):
    """Installment lifecycle states."""

    DRAFT = "draft"
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


# States a payment can be recorded against
PAYABLE_STATUSES = frozenset(
    {InstallmentStatus.PENDING, InstallmentStatus.OVERDUE, InstallmentStatus.PARTIAL}
)


class Installment(Base):
    __tablename__ = "installments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    agency_id = Column(
        UUIDType, ForeignKey("agencies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    payment_plan_id = Column(
        UUIDType,
        ForeignKey("payment_plans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    installment_number = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=True)
    due_date = Column(Date, nullable=False, index=True)
    paid_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=InstallmentStatus.DRAFT.value, index=True)
    payment_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def outstanding_amount(self) -> Decimal:
        paid = Decimal(str(self.paid_amount)) if self.paid_amount is not None else Decimal("0")
        return max(Decimal(str(self.amount)) - paid, Decimal("0"))
