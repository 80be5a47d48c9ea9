"""create agencies, students, payment plans and installments tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1a9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "agencies",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("overdue_cutoff_time", sa.Time(), nullable=True),
        sa.Column("due_soon_threshold_days", sa.Integer(), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "due_soon_threshold_days IS NULL OR "
            "(due_soon_threshold_days >= 0 AND due_soon_threshold_days <= 30)",
            name="ck_agencies_due_soon_threshold_days",
        ),
    )

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("agency_id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("contact_preference", sa.String(length=10), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_students_agency_id"), "students", ["agency_id"])

    op.create_table(
        "payment_plans",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("agency_id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("total_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(precision=5, scale=4), nullable=False),
        sa.Column("expected_commission", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("earned_commission", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payment_instructions", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_payment_plans_agency_id"), "payment_plans", ["agency_id"])
    op.create_index(op.f("ix_payment_plans_student_id"), "payment_plans", ["student_id"])
    op.create_index(op.f("ix_payment_plans_status"), "payment_plans", ["status"])

    op.create_table(
        "installments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("agency_id", sa.String(length=36), nullable=False),
        sa.Column("payment_plan_id", sa.String(length=36), nullable=False),
        sa.Column("installment_number", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payment_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["payment_plan_id"], ["payment_plans.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "paid_amount IS NULL OR (paid_amount >= 0 AND paid_amount <= amount * 1.10)",
            name="ck_installments_paid_amount_range",
        ),
    )
    op.create_index(op.f("ix_installments_agency_id"), "installments", ["agency_id"])
    op.create_index(
        op.f("ix_installments_payment_plan_id"), "installments", ["payment_plan_id"]
    )
    op.create_index(op.f("ix_installments_due_date"), "installments", ["due_date"])
    op.create_index(op.f("ix_installments_status"), "installments", ["status"])
    op.create_index(
        "ix_installments_agency_status_due_date",
        "installments",
        ["agency_id", "status", "due_date"],
    )


def downgrade() -> None:
    op.drop_index("ix_installments_agency_status_due_date", table_name="installments")
    op.drop_index(op.f("ix_installments_status"), table_name="installments")
    op.drop_index(op.f("ix_installments_due_date"), table_name="installments")
    op.drop_index(op.f("ix_installments_payment_plan_id"), table_name="installments")
    op.drop_index(op.f("ix_installments_agency_id"), table_name="installments")
    op.drop_table("installments")
    op.drop_index(op.f("ix_payment_plans_status"), table_name="payment_plans")
    op.drop_index(op.f("ix_payment_plans_student_id"), table_name="payment_plans")
    op.drop_index(op.f("ix_payment_plans_agency_id"), table_name="payment_plans")
    op.drop_table("payment_plans")
    op.drop_index(op.f("ix_students_agency_id"), table_name="students")
    op.drop_table("students")
    op.drop_table("agencies")
