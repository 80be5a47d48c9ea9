"""Record a payment against an installment and refresh the plan aggregate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_FLOOR, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.core.exceptions import DomainRuleError, NotFoundError, ValidationError
from installment_automation.models.installment import (
    OVERPAYMENT_TOLERANCE,
    PAYABLE_STATUSES,
    Installment,
    InstallmentStatus,
)
from installment_automation.models.payment_plan import PaymentPlan
from installment_automation.repositories.agency_repository import AgencyRepository
from installment_automation.repositories.audit_log_repository import AuditLogRepository
from installment_automation.repositories.installment_repository import InstallmentRepository
from installment_automation.repositories.payment_plan_repository import PaymentPlanRepository
from installment_automation.schemas.installment import RecordPaymentRequest
from installment_automation.services.commission_service import CENTS, CommissionService
from installment_automation.services.tenant_clock import AgencySettings, resolve_tenant_time

logger = logging.getLogger(__name__)


@dataclass
class PaymentRecordingResult:
    installment: Installment
    payment_plan: PaymentPlan


def _decimal_or_none(value: object) -> str | None:
    if value is None:
        return None
    return str(Decimal(str(value)).quantize(CENTS))


class PaymentRecordingService:
    """Records payments in a single transaction.

    The installment write, the commission aggregate and the audit entry are
    committed together; any failure rolls all of them back.
    """

    def __init__(self, db: Session):
        self.db = db
        self.installment_repo = InstallmentRepository(db)
        self.plan_repo = PaymentPlanRepository(db)
        self.audit_repo = AuditLogRepository(db)
        self.commission_service = CommissionService(db)

    def record_payment(
        self,
        agency_id: UUID,
        installment_id: UUID,
        data: RecordPaymentRequest,
        actor_id: str | None = None,
        now: datetime | None = None,
    ) -> PaymentRecordingResult:
        try:
            result = self._record(agency_id, installment_id, data, actor_id, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(result.installment)
        self.db.refresh(result.payment_plan)
        logger.info(
            "Recorded payment of %s on installment %s (status %s)",
            data.paid_amount,
            installment_id,
            result.installment.status,
        )
        return result

    def _record(
        self,
        agency_id: UUID,
        installment_id: UUID,
        data: RecordPaymentRequest,
        actor_id: str | None,
        now: datetime | None,
    ) -> PaymentRecordingResult:
        agency = AgencyRepository(self.db).get_by_id(agency_id)
        if agency is None:
            raise NotFoundError("Agency", agency_id)

        tenant_time = resolve_tenant_time(AgencySettings.from_agency(agency), now)
        if data.paid_date > tenant_time.local_date:
            raise ValidationError.for_field("paidDate", "Payment date cannot be in the future")

        installment = self.installment_repo.get_by_id(installment_id, agency_id)
        if installment is None:
            raise NotFoundError("Installment", installment_id)

        current_status = InstallmentStatus(installment.status)
        if current_status not in PAYABLE_STATUSES:
            raise DomainRuleError(
                f"Cannot record payment for an installment with status '{current_status.value}'"
            )

        amount = Decimal(str(installment.amount))
        previous_paid = (
            Decimal(str(installment.paid_amount))
            if installment.paid_amount is not None
            else Decimal("0")
        )
        new_paid = previous_paid + data.paid_amount
        ceiling = amount * OVERPAYMENT_TOLERANCE
        if new_paid > ceiling:
            largest = ceiling.quantize(CENTS, rounding=ROUND_FLOOR)
            raise ValidationError.for_field(
                "paidAmount",
                f"Payment amount cannot exceed {largest:.2f} (110% of installment amount)",
            )

        new_status = InstallmentStatus.PAID if new_paid >= amount else InstallmentStatus.PARTIAL
        old_values = {
            "status": current_status.value,
            "paid_amount": _decimal_or_none(installment.paid_amount),
            "paid_date": installment.paid_date.isoformat() if installment.paid_date else None,
            "payment_notes": installment.payment_notes,
        }
        notes = data.notes if data.notes is not None else installment.payment_notes

        self.installment_repo.apply_payment(
            installment,
            paid_amount=new_paid,
            paid_date=data.paid_date,
            status=new_status,
            notes=notes,  # type: ignore[arg-type]
        )

        plan_id: UUID = installment.payment_plan_id  # type: ignore[assignment]
        plan = self.plan_repo.get_by_id(plan_id, agency_id)
        if plan is None:
            raise NotFoundError("Payment plan", plan_id)
        old_commission = _decimal_or_none(plan.earned_commission)
        old_plan_status = str(plan.status)
        commission = self.commission_service.apply(plan_id)

        self.audit_repo.create(
            agency_id=agency_id,
            resource_type="installment",
            resource_id=installment_id,
            action="payment_recorded",
            changes={
                "old": old_values,
                "new": {
                    "status": new_status.value,
                    "paid_amount": _decimal_or_none(new_paid),
                    "paid_date": data.paid_date.isoformat(),
                    "payment_notes": notes,
                },
                "payment_plan": {
                    "earned_commission": {
                        "old": old_commission,
                        "new": _decimal_or_none(commission.earned_commission),
                    },
                    "status": {"old": old_plan_status, "new": str(plan.status)},
                },
            },
            actor_type="user" if actor_id else "system",
            actor_id=actor_id,
            metadata={
                "payment_amount": _decimal_or_none(data.paid_amount),
                "recorded_at": datetime.now(UTC).isoformat(),
            },
        )
        return PaymentRecordingResult(installment=installment, payment_plan=plan)
