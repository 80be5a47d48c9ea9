"""Student payment reminder messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from html import escape
from uuid import UUID

from installment_automation.core.exceptions import RecordDecodeError
from installment_automation.models.agency import Agency
from installment_automation.models.installment import Installment
from installment_automation.models.payment_plan import PaymentPlan
from installment_automation.models.student import Student
from installment_automation.models.student_notification import NotificationKind
from installment_automation.services.email_service import format_amount

DEFAULT_PAYMENT_INSTRUCTIONS = "Please contact your agency for payment instructions."


@dataclass(frozen=True)
class ReminderMessage:
    """A reminder ready for delivery, decoded from installment, plan and student rows."""

    kind: NotificationKind
    agency_id: UUID
    installment_id: UUID
    student_id: UUID
    to: str | None
    subject: str
    body: str


def _display_date(value: date) -> str:
    return value.strftime("%B %d, %Y")


def _contact_block(agency: Agency) -> str:
    lines = []
    if agency.contact_email:
        lines.append(f"<p>Email: {escape(str(agency.contact_email))}</p>")
    if agency.contact_phone:
        lines.append(f"<p>Phone: {escape(str(agency.contact_phone))}</p>")
    if not lines:
        return ""
    return "<p><strong>Need Help?</strong></p>" + "".join(lines)


def _body(
    *,
    heading: str,
    lead: str,
    student: Student,
    installment: Installment,
    plan: PaymentPlan,
    agency: Agency,
) -> str:
    instructions = plan.payment_instructions or DEFAULT_PAYMENT_INSTRUCTIONS
    return (
        f"<h1>{heading}</h1>"
        f"<p>Hi {escape(str(student.full_name))},</p>"
        f"<p>{lead}</p>"
        f"<table>"
        f"<tr><td><strong>Amount Due:</strong></td>"
        f"<td>${format_amount(installment.outstanding_amount)}</td></tr>"
        f"<tr><td><strong>Due Date:</strong></td>"
        f"<td>{_display_date(installment.due_date)}</td></tr>"  # type: ignore[arg-type]
        f"</table>"
        f"<p><strong>Payment Instructions</strong></p>"
        f"<p>{escape(str(instructions))}</p>"
        f"{_contact_block(agency)}"
        f"<p>Thank you,<br>{escape(str(agency.name))}</p>"
    )


def _check_rows(
    installment: Installment, plan: PaymentPlan | None, student: Student | None
) -> tuple[PaymentPlan, Student]:
    if plan is None:
        raise RecordDecodeError(f"Installment {installment.id}: missing payment plan")
    if student is None:
        raise RecordDecodeError(f"Installment {installment.id}: missing student data")
    if installment.due_date is None or installment.amount is None:
        raise RecordDecodeError(f"Installment {installment.id}: missing due date or amount")
    return plan, student


def build_due_soon_message(
    installment: Installment,
    plan: PaymentPlan | None,
    student: Student | None,
    agency: Agency,
) -> ReminderMessage:
    plan, student = _check_rows(installment, plan, student)
    amount = format_amount(installment.outstanding_amount)
    return ReminderMessage(
        kind=NotificationKind.DUE_SOON,
        agency_id=installment.agency_id,  # type: ignore[arg-type]
        installment_id=installment.id,  # type: ignore[arg-type]
        student_id=student.id,  # type: ignore[arg-type]
        to=student.email,  # type: ignore[arg-type]
        subject=f"Payment Reminder: ${amount} due on {_display_date(installment.due_date)}",  # type: ignore[arg-type]
        body=_body(
            heading="Payment Reminder",
            lead=(
                "This is a friendly reminder that your payment is due soon. "
                "If you have already made this payment, please disregard this reminder."
            ),
            student=student,
            installment=installment,
            plan=plan,
            agency=agency,
        ),
    )


def build_overdue_message(
    installment: Installment,
    plan: PaymentPlan | None,
    student: Student | None,
    agency: Agency,
) -> ReminderMessage:
    plan, student = _check_rows(installment, plan, student)
    amount = format_amount(installment.outstanding_amount)
    return ReminderMessage(
        kind=NotificationKind.OVERDUE,
        agency_id=installment.agency_id,  # type: ignore[arg-type]
        installment_id=installment.id,  # type: ignore[arg-type]
        student_id=student.id,  # type: ignore[arg-type]
        to=student.email,  # type: ignore[arg-type]
        subject=f"Payment Overdue: ${amount} was due on {_display_date(installment.due_date)}",  # type: ignore[arg-type]
        body=_body(
            heading="Payment Overdue",
            lead=(
                "Our records show that this payment has not been received by its due date. "
                "Please arrange payment as soon as possible."
            ),
            student=student,
            installment=installment,
            plan=plan,
            agency=agency,
        ),
    )
