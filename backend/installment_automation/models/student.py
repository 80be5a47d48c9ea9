"""Student model - the recipient of payment reminders."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, func

from installment_automation.core.database import Base
from installment_automation.models.shared import UUIDType, generate_uuid


class ContactPreference(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"


class Student(Base):
    __tablename__ = "students"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    agency_id = Column(
        UUIDType, ForeignKey("agencies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    contact_preference = Column(
        String(10), nullable=False, default=ContactPreference.EMAIL.value
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def accepts_email(self) -> bool:
        preference = self.contact_preference or ContactPreference.EMAIL.value
        return preference in (ContactPreference.EMAIL.value, ContactPreference.BOTH.value)
