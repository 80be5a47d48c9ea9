"""Commission recalculation for payment plans."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.core.exceptions import NotFoundError
from installment_automation.models.installment import Installment, InstallmentStatus
from installment_automation.models.payment_plan import PaymentPlan, PaymentPlanStatus
from installment_automation.repositories.installment_repository import InstallmentRepository
from installment_automation.repositories.payment_plan_repository import PaymentPlanRepository

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CommissionResult:
    earned_commission: Decimal
    plan_completed: bool


def _to_decimal(value: object) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def calculate_earned_commission(
    installments: Iterable[Installment],
    total_amount: Decimal,
    expected_commission: Decimal,
) -> CommissionResult:
    """earned = (sum of paid_amount where status=paid / total) x expected.

    Rounded half-up to 2 places; a zero total earns nothing. The plan is
    completed only when it has installments and all of them are paid.
    """
    items = list(installments)
    paid_total = sum(
        (
            _to_decimal(inst.paid_amount)
            for inst in items
            if inst.status == InstallmentStatus.PAID.value and inst.paid_amount is not None
        ),
        Decimal("0"),
    )
    total = _to_decimal(total_amount)
    if total > 0:
        earned = (paid_total / total * _to_decimal(expected_commission)).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
    else:
        earned = Decimal("0.00")
    completed = bool(items) and all(inst.status == InstallmentStatus.PAID.value for inst in items)
    return CommissionResult(earned_commission=earned, plan_completed=completed)


class CommissionService:
    """Recalculates a plan's earned commission from its installments.

    Reads go through the caller's session, so installment writes flushed
    earlier in the same transaction are included.
    """

    def __init__(self, db: Session):
        self.db = db
        self.plan_repo = PaymentPlanRepository(db)
        self.installment_repo = InstallmentRepository(db)

    def _load_plan(self, plan_id: UUID) -> PaymentPlan:
        plan = self.plan_repo.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError("Payment plan", plan_id)
        return plan

    def _calculate(self, plan: PaymentPlan) -> CommissionResult:
        installments = self.installment_repo.get_by_plan(plan.id)  # type: ignore[arg-type]
        return calculate_earned_commission(
            installments,
            _to_decimal(plan.total_amount),
            _to_decimal(plan.expected_commission),
        )

    def recalculate(self, plan_id: UUID) -> CommissionResult:
        return self._calculate(self._load_plan(plan_id))

    def apply(self, plan_id: UUID) -> CommissionResult:
        """Recalculate and write the aggregate onto the plan (flush only)."""
        plan = self._load_plan(plan_id)
        result = self._calculate(plan)
        self.plan_repo.update_aggregate(
            plan,
            result.earned_commission,
            PaymentPlanStatus.COMPLETED if result.plan_completed else None,
        )
        return result
