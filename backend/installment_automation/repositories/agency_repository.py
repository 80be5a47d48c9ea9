"""Agency repository for data access."""

from datetime import time
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.models.agency import Agency


class AgencyRepository:
    """Repository for Agency model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, agency_id: UUID) -> Agency | None:
        return self.db.query(Agency).filter(Agency.id == agency_id).first()

    def get_all(self) -> list[Agency]:
        return self.db.query(Agency).order_by(Agency.created_at.asc(), Agency.id.asc()).all()

    def update_settings(
        self,
        agency_id: UUID,
        *,
        timezone: str | None = None,
        overdue_cutoff_time: time | None = None,
        due_soon_threshold_days: int | None = None,
    ) -> Agency | None:
        """Update automation settings. ``None`` leaves a field unchanged."""
        agency = self.get_by_id(agency_id)
        if not agency:
            return None

        if timezone is not None:
            agency.timezone = timezone  # type: ignore[assignment]
        if overdue_cutoff_time is not None:
            agency.overdue_cutoff_time = overdue_cutoff_time  # type: ignore[assignment]
        if due_soon_threshold_days is not None:
            agency.due_soon_threshold_days = due_soon_threshold_days  # type: ignore[assignment]

        self.db.commit()
        self.db.refresh(agency)
        return agency
