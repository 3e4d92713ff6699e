"""Add visa applicant and applicant audit event tables

Revision ID: 3c9e1f7a2b40
Revises:
Create Date: 2026-10-19 09:30:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3c9e1f7a2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "visa_applicant",
        sa.Column("passport_number", sa.String(length=64), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("nationality", sa.String(length=128), nullable=False),
        sa.Column("gender", sa.String(length=32), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("visa_type", sa.String(length=128), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=True),
        sa.Column("exit_date", sa.Date(), nullable=True),
        sa.Column("sponsor", sa.String(length=255), nullable=True),
        sa.Column("profession", sa.String(length=255), nullable=True),
        sa.Column("employer", sa.String(length=255), nullable=True),
        sa.Column("monthly_salary", sa.Float(), nullable=True),
        sa.Column("work_experience_years", sa.Integer(), nullable=True),
        sa.Column("education_level", sa.String(length=128), nullable=True),
        sa.Column("previous_visits", sa.Integer(), nullable=False),
        sa.Column("has_violations", sa.Boolean(), nullable=False),
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("violations", sa.JSON(), nullable=False),
        sa.Column("risk_score", sa.Integer(), nullable=True),
        sa.Column("risk_analysis", sa.JSON(), nullable=True),
        sa.Column("analyzed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_reason", sa.String(length=1000), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_visa_applicant_passport_number"),
        "visa_applicant",
        ["passport_number"],
        unique=False,
    )
    op.create_index(
        op.f("ix_visa_applicant_nationality"),
        "visa_applicant",
        ["nationality"],
        unique=False,
    )
    op.create_index(
        op.f("ix_visa_applicant_visa_type"),
        "visa_applicant",
        ["visa_type"],
        unique=False,
    )

    op.create_table(
        "applicant_audit_event",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("reason", sa.String(length=1000), nullable=True),
        sa.Column("event_metadata", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("applicant_id", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(
            ["applicant_id"], ["visa_applicant.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    op.drop_table("applicant_audit_event")
    op.drop_index(op.f("ix_visa_applicant_visa_type"), table_name="visa_applicant")
    op.drop_index(op.f("ix_visa_applicant_nationality"), table_name="visa_applicant")
    op.drop_index(
        op.f("ix_visa_applicant_passport_number"), table_name="visa_applicant"
    )
    op.drop_table("visa_applicant")
