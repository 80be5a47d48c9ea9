"""Typed exception hierarchy for the installment automation service.

Every error carries a machine-readable ``code`` so that routers and the job
ledger can report it without parsing messages.

    AutomationError
    +-- ValidationError
    |   +-- InvalidTimezoneError
    +-- NotFoundError
    +-- DomainRuleError
    +-- RecordDecodeError
    +-- JobLedgerError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation message."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class AutomationError(Exception):
    """Base class for all service errors."""

    code: str = "AUTOMATION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(AutomationError):
    """Input failed validation; carries the offending fields."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field_errors: list[FieldError] | None = None):
        super().__init__(message)
        self.field_errors = field_errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, [FieldError(field=field, message=message)])

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["details"] = [e.to_dict() for e in self.field_errors]
        return data


class InvalidTimezoneError(ValidationError):
    """Tenant time zone is not a known IANA zone."""

    code = "INVALID_TIMEZONE"

    def __init__(self, timezone_name: str):
        super().__init__(
            f"Unknown time zone '{timezone_name}'",
            [FieldError(field="timezone", message=f"Unknown time zone '{timezone_name}'")],
        )
        self.timezone_name = timezone_name


class NotFoundError(AutomationError):
    """Entity does not exist within the caller's tenant."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: object | None = None):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class DomainRuleError(AutomationError):
    """A business rule rejected the operation."""

    code = "DOMAIN_RULE_VIOLATION"


class RecordDecodeError(AutomationError):
    """A stored row is missing data that the pipeline requires."""

    code = "RECORD_DECODE_ERROR"


class JobLedgerError(AutomationError):
    """The job run ledger entry could not be created or finalized."""

    code = "JOB_LEDGER_ERROR"
