"""Staff notification API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from installment_automation.core.auth import get_current_agency
from installment_automation.core.database import get_db
from installment_automation.repositories.notification_repository import NotificationRepository
from installment_automation.schemas.notification import (
    NotificationCountResponse,
    NotificationResponse,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[NotificationResponse],
    summary="List notifications",
)
async def list_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    category: str | None = None,
    is_read: bool | None = None,
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> list[NotificationResponse]:
    """List notifications with optional filters."""
    repo = NotificationRepository(db)
    notifications = repo.get_all(
        agency_id=agency_id,
        skip=skip,
        limit=limit,
        category=category,
        is_read=is_read,
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get(
    "/unread_count",
    response_model=NotificationCountResponse,
    summary="Get unread notification count",
)
async def get_unread_count(
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> NotificationCountResponse:
    repo = NotificationRepository(db)
    return NotificationCountResponse(unread_count=repo.count_unread(agency_id))


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
    responses={404: {"description": "Notification not found"}},
)
async def mark_as_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
    agency_id: UUID = Depends(get_current_agency),
) -> NotificationResponse:
    notification = NotificationRepository(db).mark_as_read(notification_id, agency_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationResponse.model_validate(notification)
