"""Pydantic schemas for agency automation settings."""

from datetime import time
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from installment_automation.core.exceptions import InvalidTimezoneError
from installment_automation.services.tenant_clock import MAX_DUE_SOON_DAYS, load_zone


class AgencySettingsResponse(BaseModel):
    agency_id: UUID
    timezone: str
    overdue_cutoff_time: time
    due_soon_threshold_days: int


class AgencySettingsUpdate(BaseModel):
    timezone: str | None = Field(default=None, min_length=1, max_length=64)
    overdue_cutoff_time: time | None = None
    due_soon_threshold_days: int | None = Field(default=None, ge=0, le=MAX_DUE_SOON_DAYS)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            load_zone(v)
        except InvalidTimezoneError as exc:
            raise ValueError(exc.message) from None
        return v
