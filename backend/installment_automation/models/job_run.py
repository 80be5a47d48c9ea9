"""JobRun model - one ledger entry per automation job invocation."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, func

from installment_automation.core.database import Base
from installment_automation.models.shared import UUIDType, generate_uuid


class JobRunStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class JobRun(Base):
    """Created as ``running`` at invocation start, finalized exactly once."""

    __tablename__ = "jobs_log"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    job_name = Column(String(100), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default=JobRunStatus.RUNNING.value, index=True)
    records_updated = Column(Integer, nullable=False, default=0)
    metadata_ = Column("metadata", JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
