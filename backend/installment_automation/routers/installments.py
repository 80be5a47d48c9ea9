"""Installment API endpoints."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from installment_automation.core.auth import get_current_agency
from installment_automation.core.database import get_db
from installment_automation.models.installment import InstallmentStatus
from installment_automation.repositories.agency_repository import AgencyRepository
from installment_automation.repositories.installment_repository import InstallmentRepository
from installment_automation.schemas.installment import (
    DueSoonSummaryResponse,
    InstallmentResponse,
    PaymentPlanSummary,
    RecordPaymentRequest,
    RecordPaymentResponse,
)
from installment_automation.services.payment_recording_service import PaymentRecordingService
from installment_automation.services.tenant_clock import AgencySettings, resolve_tenant_time

router = APIRouter()


@router.get(
    "/",
    response_model=list[InstallmentResponse],
    summary="List installments",
)
async def list_installments(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: InstallmentStatus | None = None,
    payment_plan_id: UUID | None = None,
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> list[InstallmentResponse]:
    repo = InstallmentRepository(db)
    installments = repo.get_all(
        agency_id,
        skip=skip,
        limit=limit,
        status=status,
        payment_plan_id=payment_plan_id,
    )
    return [InstallmentResponse.model_validate(i) for i in installments]


@router.get(
    "/due-soon",
    response_model=DueSoonSummaryResponse,
    summary="Pending installments due within the agency's threshold",
)
async def due_soon_summary(
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> DueSoonSummaryResponse:
    agency = AgencyRepository(db).get_by_id(agency_id)
    if agency is None:
        raise HTTPException(status_code=404, detail="Agency not found")
    agency_settings = AgencySettings.from_agency(agency)
    tenant_time = resolve_tenant_time(agency_settings)
    installments = InstallmentRepository(db).get_due_within(
        agency_id, tenant_time.local_date, agency_settings.due_soon_days
    )
    return DueSoonSummaryResponse(
        threshold_days=agency_settings.due_soon_days,
        local_date=tenant_time.local_date,
        count=len(installments),
        total_amount=sum((i.outstanding_amount for i in installments), Decimal("0")),
        installments=[InstallmentResponse.model_validate(i) for i in installments],
    )


@router.post(
    "/{installment_id}/record-payment",
    response_model=RecordPaymentResponse,
    summary="Record a payment against an installment",
    responses={
        400: {"description": "Validation error or installment not payable"},
        404: {"description": "Installment not found"},
    },
)
async def record_payment(
    installment_id: UUID,
    data: RecordPaymentRequest,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> RecordPaymentResponse:
    """Record a full or partial payment and refresh the plan's earned commission."""
    service = PaymentRecordingService(db)
    result = service.record_payment(agency_id, installment_id, data, actor_id=x_user_id)
    return RecordPaymentResponse(
        installment=InstallmentResponse.model_validate(result.installment),
        payment_plan=PaymentPlanSummary.model_validate(result.payment_plan),
    )
