"""Installment and payment recording schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, while also accepting field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordPaymentRequest(CamelModel):
    """Schema for recording a payment against an installment."""

    paid_date: date
    paid_amount: Decimal = Field(..., gt=0, decimal_places=2)
    notes: str | None = Field(default=None, max_length=500)


class InstallmentResponse(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    payment_plan_id: UUID
    installment_number: int
    amount: Decimal
    paid_amount: Decimal | None = None
    outstanding_amount: Decimal
    due_date: date
    paid_date: date | None = None
    status: str
    payment_notes: str | None = None
    updated_at: datetime | None = None


class PaymentPlanSummary(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    status: str
    earned_commission: Decimal


class RecordPaymentResponse(CamelModel):
    installment: InstallmentResponse
    payment_plan: PaymentPlanSummary


class DueSoonSummaryResponse(CamelModel):
    threshold_days: int
    local_date: date
    count: int
    total_amount: Decimal
    installments: list[InstallmentResponse]
