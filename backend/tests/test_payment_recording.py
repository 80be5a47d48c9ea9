"""Tests for payment recording and commission recalculation."""

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from installment_automation.core.database import get_db
from installment_automation.core.exceptions import DomainRuleError, NotFoundError, ValidationError
from installment_automation.models.audit_log import AuditLog
from installment_automation.models.installment import InstallmentStatus
from installment_automation.models.payment_plan import PaymentPlanStatus
from installment_automation.repositories.audit_log_repository import AuditLogRepository
from installment_automation.schemas.installment import RecordPaymentRequest
from installment_automation.services.commission_service import (
    CommissionService,
    calculate_earned_commission,
)
from installment_automation.services.payment_recording_service import PaymentRecordingService
from tests.conftest import DEFAULT_AGENCY_ID, create_agency, create_installment, create_plan

NOW = datetime(2025, 1, 20, 12, 0, tzinfo=UTC)


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def _payment(amount: str, paid_date: date = date(2025, 1, 18), notes: str | None = None):
    return RecordPaymentRequest(paid_date=paid_date, paid_amount=Decimal(amount), notes=notes)


class TestCalculateEarnedCommission:
    def _inst(self, status: str, paid: str | None):
        return SimpleNamespace(status=status, paid_amount=Decimal(paid) if paid else None)

    def test_only_paid_installments_count(self):
        result = calculate_earned_commission(
            [self._inst("paid", "600"), self._inst("partial", "200")],
            Decimal("1000"),
            Decimal("150"),
        )
        assert result.earned_commission == Decimal("90.00")
        assert result.plan_completed is False

    def test_rounds_half_up(self):
        result = calculate_earned_commission(
            [self._inst("paid", "1")], Decimal("2"), Decimal("0.05")
        )
        assert result.earned_commission == Decimal("0.03")

    def test_zero_total_earns_nothing(self):
        result = calculate_earned_commission([self._inst("paid", "0")], Decimal("0"), Decimal("10"))
        assert result.earned_commission == Decimal("0.00")

    def test_completed_when_all_paid(self):
        result = calculate_earned_commission(
            [self._inst("paid", "500"), self._inst("paid", "500")],
            Decimal("1000"),
            Decimal("150"),
        )
        assert result.earned_commission == Decimal("150.00")
        assert result.plan_completed is True

    def test_plan_without_installments_is_not_completed(self):
        result = calculate_earned_commission([], Decimal("1000"), Decimal("150"))
        assert result.plan_completed is False


class TestCommissionService:
    def test_recalculate_missing_plan(self, db_session):
        with pytest.raises(NotFoundError):
            CommissionService(db_session).recalculate(uuid.uuid4())

    def test_recalculate_reads_plan_installments(self, db_session):
        plan = create_plan(db_session)
        create_installment(
            db_session,
            plan,
            number=1,
            amount="400.00",
            due_date=date(2025, 1, 1),
            status=InstallmentStatus.PAID,
            paid_amount="400.00",
        )
        create_installment(db_session, plan, number=2, amount="600.00", due_date=date(2025, 2, 1))

        result = CommissionService(db_session).recalculate(plan.id)

        assert result.earned_commission == Decimal("60.00")
        assert result.plan_completed is False


class TestRecordPayment:
    def test_full_payment_marks_paid_and_updates_commission(self, db_session):
        plan = create_plan(db_session)
        first = create_installment(
            db_session, plan, number=1, amount="600.00", due_date=date(2025, 1, 15)
        )
        create_installment(db_session, plan, number=2, amount="400.00", due_date=date(2025, 2, 15))

        result = PaymentRecordingService(db_session).record_payment(
            DEFAULT_AGENCY_ID, first.id, _payment("600.00"), now=NOW
        )

        assert result.installment.status == InstallmentStatus.PAID.value
        assert result.installment.paid_date == date(2025, 1, 18)
        assert result.installment.outstanding_amount == Decimal("0")
        assert result.payment_plan.earned_commission == Decimal("90.00")
        assert result.payment_plan.status == PaymentPlanStatus.ACTIVE.value

    def test_partial_top_up_accumulates(self, db_session):
        plan = create_plan(db_session)
        inst = create_installment(db_session, plan, amount="1000.00", due_date=date(2025, 1, 15))
        service = PaymentRecordingService(db_session)

        first = service.record_payment(DEFAULT_AGENCY_ID, inst.id, _payment("600.00"), now=NOW)
        assert first.installment.status == InstallmentStatus.PARTIAL.value
        assert first.installment.outstanding_amount == Decimal("400.00")

        second = service.record_payment(DEFAULT_AGENCY_ID, inst.id, _payment("200.00"), now=NOW)
        assert second.installment.paid_amount == Decimal("800.00")
        assert second.installment.status == InstallmentStatus.PARTIAL.value
        assert second.installment.outstanding_amount == Decimal("200.00")
        assert second.payment_plan.earned_commission == Decimal("0.00")

    def test_overpayment_rejected_without_writes(self, db_session):
        plan = create_plan(db_session)
        inst = create_installment(db_session, plan, amount="1000.00", due_date=date(2025, 1, 15))

        with pytest.raises(ValidationError) as exc_info:
            PaymentRecordingService(db_session).record_payment(
                DEFAULT_AGENCY_ID, inst.id, _payment("1100.01"), now=NOW
            )

        assert exc_info.value.field_errors[0].field == "paidAmount"
        assert (
            exc_info.value.message
            == "Payment amount cannot exceed 1100.00 (110% of installment amount)"
        )
        db_session.refresh(inst)
        assert inst.status == InstallmentStatus.PENDING.value
        assert inst.paid_amount is None
        assert db_session.query(AuditLog).count() == 0

    def test_ceiling_applies_to_cumulative_amount(self, db_session):
        plan = create_plan(db_session)
        inst = create_installment(db_session, plan, amount="1000.00", due_date=date(2025, 1, 15))
        service = PaymentRecordingService(db_session)
        service.record_payment(DEFAULT_AGENCY_ID, inst.id, _payment("600.00"), now=NOW)

        with pytest.raises(ValidationError):
            service.record_payment(DEFAULT_AGENCY_ID, inst.id, _payment("500.01"), now=NOW)

        db_session.refresh(inst)
        assert inst.paid_amount == Decimal("600.00")

    def test_ceiling_is_not_rounded_up(self, db_session):
        # 110% of 1.25 is 1.375; the largest acceptable two-place amount is 1.37
        plan = create_plan(db_session, total_amount="1.25")
        inst = create_installment(db_session, plan, amount="1.25", due_date=date(2025, 1, 15))
        service = PaymentRecordingService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            service.record_payment(DEFAULT_AGENCY_ID, inst.id, _payment("1.38"), now=NOW)

        assert (
            exc_info.value.message
            == "Payment amount cannot exceed 1.37 (110% of installment amount)"
        )
        db_session.refresh(inst)
        assert inst.paid_amount is None

        result = service.record_payment(DEFAULT_AGENCY_ID, inst.id, _payment("1.37"), now=NOW)
        assert result.installment.status == InstallmentStatus.PAID.value

    def test_overpayment_within_tolerance_marks_paid(self, db_session):
        plan = create_plan(db_session, total_amount="1000.00")
        inst = create_installment(db_session, plan, amount="1000.00", due_date=date(2025, 1, 15))

        result = PaymentRecordingService(db_session).record_payment(
            DEFAULT_AGENCY_ID, inst.id, _payment("1100.00"), now=NOW
        )

        assert result.installment.status == InstallmentStatus.PAID.value
        assert result.installment.outstanding_amount == Decimal("0")
        assert result.payment_plan.status == PaymentPlanStatus.COMPLETED.value

    def test_last_installment_completes_plan(self, db_session):
        plan = create_plan(db_session, total_amount="1000.00", commission_rate="0.15")
        create_installment(
            db_session,
            plan,
            number=1,
            amount="500.00",
            due_date=date(2025, 1, 1),
            status=InstallmentStatus.PAID,
            paid_amount="500.00",
        )
        last = create_installment(
            db_session,
            plan,
            number=2,
            amount="500.00",
            due_date=date(2025, 1, 15),
            status=InstallmentStatus.OVERDUE,
        )

        result = PaymentRecordingService(db_session).record_payment(
            DEFAULT_AGENCY_ID, last.id, _payment("500.00"), now=NOW
        )

        assert result.payment_plan.status == PaymentPlanStatus.COMPLETED.value
        assert result.payment_plan.earned_commission == Decimal("150.00")

    def test_writes_audit_entry_with_old_and_new_values(self, db_session):
        plan = create_plan(db_session)
        inst = create_installment(db_session, plan, amount="1000.00", due_date=date(2025, 1, 15))

        PaymentRecordingService(db_session).record_payment(
            DEFAULT_AGENCY_ID, inst.id, _payment("250.00", notes="cash"), actor_id="user-7", now=NOW
        )

        (entry,) = AuditLogRepository(db_session).get_history(
            DEFAULT_AGENCY_ID, inst.id, action="payment_recorded"
        )
        assert entry.action == "payment_recorded"
        assert entry.actor_type == "user"
        assert entry.actor_id == "user-7"
        assert entry.changes["old"]["status"] == "pending"
        assert entry.changes["old"]["paid_amount"] is None
        assert entry.changes["new"]["status"] == "partial"
        assert entry.changes["new"]["paid_amount"] == "250.00"
        assert entry.changes["new"]["payment_notes"] == "cash"

    def test_keeps_previous_notes_when_none_given(self, db_session):
        plan = create_plan(db_session)
        inst = create_installment(db_session, plan, amount="1000.00", due_date=date(2025, 1, 15))
        service = PaymentRecordingService(db_session)
        service.record_payment(
            DEFAULT_AGENCY_ID, inst.id, _payment("100.00", notes="first"), now=NOW
        )

        result = service.record_payment(DEFAULT_AGENCY_ID, inst.id, _payment("100.00"), now=NOW)

        assert result.installment.payment_notes == "first"

    @pytest.mark.parametrize(
        "status", [InstallmentStatus.DRAFT, InstallmentStatus.CANCELLED, InstallmentStatus.PAID]
    )
    def test_rejects_unpayable_status(self, db_session, status):
        plan = create_plan(db_session)
        inst = create_installment(
            db_session, plan, amount="1000.00", due_date=date(2025, 1, 15), status=status
        )

        with pytest.raises(DomainRuleError):
            PaymentRecordingService(db_session).record_payment(
                DEFAULT_AGENCY_ID, inst.id, _payment("100.00"), now=NOW
            )

    def test_other_tenant_installment_not_found(self, db_session):
        other = create_agency(db_session, name="Other")
        plan = create_plan(db_session, other.id)
        inst = create_installment(db_session, plan, due_date=date(2025, 1, 15))

        with pytest.raises(NotFoundError):
            PaymentRecordingService(db_session).record_payment(
                DEFAULT_AGENCY_ID, inst.id, _payment("100.00"), now=NOW
            )

    def test_future_paid_date_rejected_in_agency_time(self, db_session):
        brisbane = create_agency(db_session, name="Brisbane", timezone="Australia/Brisbane")
        plan = create_plan(db_session, brisbane.id)
        inst = create_installment(db_session, plan, due_date=date(2025, 1, 15))
        service = PaymentRecordingService(db_session)
        # 20:00 UTC on the 20th is already the 21st in Brisbane
        late_evening = datetime(2025, 1, 20, 20, 0, tzinfo=UTC)

        result = service.record_payment(
            brisbane.id, inst.id, _payment("100.00", paid_date=date(2025, 1, 21)), now=late_evening
        )
        assert result.installment.paid_date == date(2025, 1, 21)

        with pytest.raises(ValidationError) as exc_info:
            service.record_payment(
                brisbane.id,
                inst.id,
                _payment("100.00", paid_date=date(2025, 1, 22)),
                now=late_evening,
            )
        assert exc_info.value.field_errors[0].field == "paidDate"
