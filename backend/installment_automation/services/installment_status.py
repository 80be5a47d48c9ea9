"""Installment status transition rules."""

from datetime import date

from installment_automation.models.installment import InstallmentStatus
from installment_automation.services.tenant_clock import TenantTime


def evaluate_transition(
    due_date: date,
    status: InstallmentStatus | str,
    tenant_time: TenantTime,
) -> InstallmentStatus | None:
    """Return the new status for an installment, or None for no change.

    Only pending installments move, and only to overdue: when the due date is
    before the tenant's local today, or is today and the cutoff has passed.
    """
    if InstallmentStatus(status) != InstallmentStatus.PENDING:
        return None
    if due_date < tenant_time.local_date:
        return InstallmentStatus.OVERDUE
    if due_date == tenant_time.local_date and tenant_time.cutoff_passed:
        return InstallmentStatus.OVERDUE
    return None
