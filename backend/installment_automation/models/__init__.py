from installment_automation.models.agency import Agency
from installment_automation.models.audit_log import AuditLog
from installment_automation.models.installment import Installment, InstallmentStatus
from installment_automation.models.job_run import JobRun, JobRunStatus
from installment_automation.models.notification import Notification
from installment_automation.models.payment_plan import PaymentPlan, PaymentPlanStatus
from installment_automation.models.student import ContactPreference, Student
from installment_automation.models.student_notification import (
    DeliveryStatus,
    NotificationKind,
    StudentNotification,
)

__all__ = [
    "Agency",
    "AuditLog",
    "ContactPreference",
    "DeliveryStatus",
    "Installment",
    "InstallmentStatus",
    "JobRun",
    "JobRunStatus",
    "Notification",
    "NotificationKind",
    "PaymentPlan",
    "PaymentPlanStatus",
    "Student",
    "StudentNotification",
]
