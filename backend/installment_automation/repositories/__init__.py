from installment_automation.repositories.agency_repository import AgencyRepository
from installment_automation.repositories.audit_log_repository import AuditLogRepository
from installment_automation.repositories.installment_repository import (
    InstallmentRepository,
    TransitionBatchResult,
)
from installment_automation.repositories.job_run_repository import JobRunRepository
from installment_automation.repositories.notification_repository import NotificationRepository
from installment_automation.repositories.payment_plan_repository import PaymentPlanRepository
from installment_automation.repositories.student_notification_repository import (
    StudentNotificationRepository,
)

__all__ = [
    "AgencyRepository",
    "AuditLogRepository",
    "InstallmentRepository",
    "JobRunRepository",
    "NotificationRepository",
    "PaymentPlanRepository",
    "StudentNotificationRepository",
    "TransitionBatchResult",
]
