"""create jobs_log table

Revision ID: d71e05a3c9f2
Revises: 8c4d2b6e1a57
Create Date: 2026-10-01 10:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "d71e05a3c9f2"
down_revision = "8c4d2b6e1a57"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "jobs_log",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("job_name", sa.String(length=100), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("records_updated", sa.Integer(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_jobs_log_job_name"), "jobs_log", ["job_name"])
    op.create_index(op.f("ix_jobs_log_status"), "jobs_log", ["status"])
    op.create_index("ix_jobs_log_job_name_started_at", "jobs_log", ["job_name", "started_at"])


def downgrade() -> None:
    op.drop_index("ix_jobs_log_job_name_started_at", table_name="jobs_log")
    op.drop_index(op.f("ix_jobs_log_status"), table_name="jobs_log")
    op.drop_index(op.f("ix_jobs_log_job_name"), table_name="jobs_log")
    op.drop_table("jobs_log")
