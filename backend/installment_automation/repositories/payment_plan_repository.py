"""Payment plan repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.models.payment_plan import PaymentPlan, PaymentPlanStatus


class PaymentPlanRepository:
    """Repository for PaymentPlan model.

    Write methods flush only; the calling service owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, plan_id: UUID, agency_id: UUID | None = None) -> PaymentPlan | None:
        query = self.db.query(PaymentPlan).filter(PaymentPlan.id == plan_id)
        if agency_id is not None:
            query = query.filter(PaymentPlan.agency_id == agency_id)
        return query.first()

    def update_aggregate(
        self,
        plan: PaymentPlan,
        earned_commission: Decimal,
        status: PaymentPlanStatus | None = None,
    ) -> PaymentPlan:
        plan.earned_commission = earned_commission  # type: ignore[assignment]
        if status is not None:
            plan.status = status.value  # type: ignore[assignment]
        self.db.flush()
        return plan
