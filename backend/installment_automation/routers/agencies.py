"""Agency automation settings API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from installment_automation.core.auth import get_current_agency
from installment_automation.core.database import get_db
from installment_automation.models.agency import Agency
from installment_automation.repositories.agency_repository import AgencyRepository
from installment_automation.schemas.agency import AgencySettingsResponse, AgencySettingsUpdate
from installment_automation.services.tenant_clock import AgencySettings

router = APIRouter()


def _settings_response(agency: Agency) -> AgencySettingsResponse:
    resolved = AgencySettings.from_agency(agency)
    return AgencySettingsResponse(
        agency_id=resolved.agency_id,
        timezone=resolved.timezone,
        overdue_cutoff_time=resolved.cutoff_time,
        due_soon_threshold_days=resolved.due_soon_days,
    )


@router.get(
    "/settings",
    response_model=AgencySettingsResponse,
    summary="Get automation settings",
)
async def get_settings(
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> AgencySettingsResponse:
    agency = AgencyRepository(db).get_by_id(agency_id)
    if agency is None:
        raise HTTPException(status_code=404, detail="Agency not found")
    return _settings_response(agency)


@router.patch(
    "/settings",
    response_model=AgencySettingsResponse,
    summary="Update automation settings",
    responses={400: {"description": "Unknown time zone or threshold out of range"}},
)
async def update_settings(
    data: AgencySettingsUpdate,
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> AgencySettingsResponse:
    agency = AgencyRepository(db).update_settings(
        agency_id,
        timezone=data.timezone,
        overdue_cutoff_time=data.overdue_cutoff_time,
        due_soon_threshold_days=data.due_soon_threshold_days,
    )
    if agency is None:
        raise HTTPException(status_code=404, detail="Agency not found")
    return _settings_response(agency)
