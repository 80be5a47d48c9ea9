"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from installment_automation.core import database as db_module
from installment_automation.core.database import Base
from installment_automation.models.agency import Agency
from installment_automation.models.installment import Installment, InstallmentStatus
from installment_automation.models.payment_plan import PaymentPlan, PaymentPlanStatus
from installment_automation.models.student import ContactPreference, Student

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known default agency ID used across all tests
DEFAULT_AGENCY_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


def _seed_default_agency(session: Session) -> None:
    """Insert a default agency used by all tests."""
    agency = session.query(Agency).filter(Agency.id == DEFAULT_AGENCY_ID).first()
    if agency is None:
        agency = Agency(
            id=DEFAULT_AGENCY_ID,
            name="Default Test Agency",
            timezone="UTC",
            contact_email="office@agency.test",
        )
        session.add(agency)
        session.commit()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    # Patch module-level engine and session factory
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        _seed_default_agency(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    # Restore originals
    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def default_agency_id():
    """Return the default agency ID for tests."""
    return DEFAULT_AGENCY_ID


# ---------------------------------------------------------------------------
# Data builders shared by the test modules
# ---------------------------------------------------------------------------


def create_agency(
    db: Session,
    *,
    name: str = "Agency",
    timezone: str | None = "UTC",
    cutoff: time | None = None,
    due_soon_days: int | None = None,
) -> Agency:
    agency = Agency(
        name=name,
        timezone=timezone,
        overdue_cutoff_time=cutoff,
        due_soon_threshold_days=due_soon_days,
    )
    db.add(agency)
    db.commit()
    db.refresh(agency)
    return agency


def create_student(
    db: Session,
    agency_id: uuid.UUID = DEFAULT_AGENCY_ID,
    *,
    full_name: str = "Ana Student",
    email: str | None = "ana@student.test",
    contact_preference: ContactPreference = ContactPreference.EMAIL,
) -> Student:
    student = Student(
        agency_id=agency_id,
        full_name=full_name,
        email=email,
        contact_preference=contact_preference.value,
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


def create_plan(
    db: Session,
    agency_id: uuid.UUID = DEFAULT_AGENCY_ID,
    *,
    student: Student | None = None,
    total_amount: str = "1000.00",
    commission_rate: str = "0.15",
    status: PaymentPlanStatus = PaymentPlanStatus.ACTIVE,
) -> PaymentPlan:
    if student is None:
        student = create_student(db, agency_id)
    total = Decimal(total_amount)
    rate = Decimal(commission_rate)
    plan = PaymentPlan(
        agency_id=agency_id,
        student_id=student.id,
        total_amount=total,
        commission_rate=rate,
        expected_commission=(total * rate).quantize(Decimal("0.01")),
        earned_commission=Decimal("0"),
        status=status.value,
        payment_instructions="Pay by bank transfer to BSB 000-000.",
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


def create_installment(
    db: Session,
    plan: PaymentPlan,
    *,
    number: int = 1,
    amount: str = "1000.00",
    due_date: date,
    status: InstallmentStatus = InstallmentStatus.PENDING,
    paid_amount: str | None = None,
) -> Installment:
    installment = Installment(
        agency_id=plan.agency_id,
        payment_plan_id=plan.id,
        installment_number=number,
        amount=Decimal(amount),
        paid_amount=Decimal(paid_amount) if paid_amount is not None else None,
        due_date=due_date,
        status=status.value,
    )
    db.add(installment)
    db.commit()
    db.refresh(installment)
    return installment
