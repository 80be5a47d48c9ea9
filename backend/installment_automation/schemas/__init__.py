from installment_automation.schemas.agency import AgencySettingsResponse, AgencySettingsUpdate
from installment_automation.schemas.installment import (
    DueSoonSummaryResponse,
    InstallmentResponse,
    PaymentPlanSummary,
    RecordPaymentRequest,
    RecordPaymentResponse,
)
from installment_automation.schemas.job_run import (
    AgencyTransitionSummary,
    AutomationRunResponse,
    JobHealthResponse,
    JobRunResponse,
)
from installment_automation.schemas.notification import (
    NotificationCountResponse,
    NotificationResponse,
)

__all__ = [
    "AgencySettingsResponse",
    "AgencySettingsUpdate",
    "AgencyTransitionSummary",
    "AutomationRunResponse",
    "DueSoonSummaryResponse",
    "InstallmentResponse",
    "JobHealthResponse",
    "JobRunResponse",
    "NotificationCountResponse",
    "NotificationResponse",
    "PaymentPlanSummary",
    "RecordPaymentRequest",
    "RecordPaymentResponse",
]
