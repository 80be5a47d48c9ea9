"""Repository for AuditLog CRUD operations."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from installment_automation.models.audit_log import AuditLog
from installment_automation.models.shared import generate_uuid


class AuditLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        agency_id: UUID,
        resource_type: str,
        resource_id: UUID,
        action: str,
        changes: dict[str, Any],
        actor_type: str,
        actor_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Add an audit entry. Flushes only; it joins the caller's transaction."""
        audit_log = AuditLog(
            id=generate_uuid(),
            agency_id=agency_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            changes=changes,
            actor_type=actor_type,
            actor_id=actor_id,
            metadata_=metadata,
        )
        self.db.add(audit_log)
        self.db.flush()
        return audit_log

    def get_history(
        self,
        agency_id: UUID,
        resource_id: UUID,
        action: str | None = None,
    ) -> list[AuditLog]:
        """Entries for one resource within a tenant, oldest first."""
        query = self.db.query(AuditLog).filter(
            AuditLog.agency_id == agency_id,
            AuditLog.resource_id == resource_id,
        )
        if action is not None:
            query = query.filter(AuditLog.action == action)
        return query.order_by(AuditLog.created_at, AuditLog.id).all()
