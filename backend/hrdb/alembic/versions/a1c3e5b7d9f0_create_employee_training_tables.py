"""create employee, training, onboarding and audit tables

Revision ID: a1c3e5b7d9f0
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1c3e5b7d9f0"
down_revision = None
branch_labels = None
depends_on = None


def _assignment_status_enum() -> sa.Enum:
    return sa.Enum(
        "ASSIGNED",
        "UNLOCKED",
        "IN_PROGRESS",
        "OVERDUE",
        "COMPLETED",
        "REMOVED",
        name="training_assignment_status_enum",
        native_enum=False,
    )


def _onboarding_status_enum() -> sa.Enum:
    return sa.Enum(
        "NOT_STARTED",
        "IN_PROGRESS",
        "COMPLETED",
        name="onboarding_progress_status_enum",
        native_enum=False,
    )


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("employee_code", sa.String(length=32), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("mailing_address", sa.String(length=500), nullable=True),
        sa.Column("requested_hours", sa.Integer(), nullable=True),
        sa.Column("emergency_contact", sa.String(length=255), nullable=True),
        sa.Column("emergency_phone", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_employees_employee_code", "employees", ["employee_code"], unique=True)
    op.create_index("ix_employees_email", "employees", ["email"], unique=True)
    op.create_index("ix_employees_is_active", "employees", ["is_active"], unique=False)

    op.create_table(
        "training_modules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("video_url", sa.String(length=1024), nullable=True),
        sa.Column("qr_code", sa.String(length=32), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_training_modules_category", "training_modules", ["category"], unique=False)
    op.create_index("ix_training_modules_qr_code", "training_modules", ["qr_code"], unique=True)
    op.create_index("ix_training_modules_active", "training_modules", ["active"], unique=False)
    op.create_index("idx_training_modules_active_order", "training_modules", ["active", "display_order"], unique=False)

    op.create_table(
        "training_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.String(length=36), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("module_id", sa.String(length=36), sa.ForeignKey("training_modules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", _assignment_status_enum(), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unlocked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completion_data", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_training_assignments_employee_id", "training_assignments", ["employee_id"], unique=False)
    op.create_index("ix_training_assignments_module_id", "training_assignments", ["module_id"], unique=False)
    op.create_index(
        "idx_training_assignments_employee_status",
        "training_assignments",
        ["employee_id", "status"],
        unique=False,
    )
    op.create_index(
        "uq_training_assignments_active_pair",
        "training_assignments",
        ["employee_id", "module_id"],
        unique=True,
        sqlite_where=sa.text("status != 'REMOVED'"),
        postgresql_where=sa.text("status != 'REMOVED'"),
    )

    op.create_table(
        "training_progress",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "assignment_id",
            sa.String(length=36),
            sa.ForeignKey("training_assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("employee_id", sa.String(length=36), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("module_id", sa.String(length=36), sa.ForeignKey("training_modules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("time_spent_minutes", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("progress_data", sa.JSON(), nullable=True),
    )
    op.create_index("ix_training_progress_assignment_id", "training_progress", ["assignment_id"], unique=False)
    op.create_index("ix_training_progress_employee_id", "training_progress", ["employee_id"], unique=False)
    op.create_index("ix_training_progress_module_id", "training_progress", ["module_id"], unique=False)
    op.create_index(
        "idx_training_progress_assignment_active",
        "training_progress",
        ["assignment_id", "is_active"],
        unique=False,
    )

    op.create_table(
        "onboarding_pages",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=64), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_onboarding_pages_display_order", "onboarding_pages", ["display_order"], unique=False)
    op.create_index("ix_onboarding_pages_active", "onboarding_pages", ["active"], unique=False)

    op.create_table(
        "employee_onboarding_progress",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.String(length=36), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("page_id", sa.String(length=36), sa.ForeignKey("onboarding_pages.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", _onboarding_status_enum(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("employee_id", "page_id", name="uq_onboarding_progress_employee_page"),
    )
    op.create_index(
        "ix_employee_onboarding_progress_employee_id",
        "employee_onboarding_progress",
        ["employee_id"],
        unique=False,
    )
    op.create_index(
        "ix_employee_onboarding_progress_page_id",
        "employee_onboarding_progress",
        ["page_id"],
        unique=False,
    )

    op.create_table(
        "audit_events",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column(
            "actor_employee_id",
            sa.String(length=36),
            sa.ForeignKey("employees.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
        sa.Column("correlation_id", sa.String(length=64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
    )
    op.create_index("ix_audit_events_entity", "audit_events", ["entity_type", "entity_id"], unique=False)
    op.create_index("ix_audit_events_time_desc", "audit_events", [sa.text("occurred_at DESC")], unique=False)
    op.create_index("ix_audit_events_entity_type", "audit_events", ["entity_type"], unique=False)
    op.create_index("ix_audit_events_entity_id", "audit_events", ["entity_id"], unique=False)
    op.create_index("ix_audit_events_action", "audit_events", ["action"], unique=False)
    op.create_index("ix_audit_events_actor_employee_id", "audit_events", ["actor_employee_id"], unique=False)
    op.create_index("ix_audit_events_occurred_at", "audit_events", ["occurred_at"], unique=False)
    op.create_index("ix_audit_events_correlation_id", "audit_events", ["correlation_id"], unique=False)


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("employee_onboarding_progress")
    op.drop_table("onboarding_pages")
    op.drop_table("training_progress")
    op.drop_table("training_assignments")
    op.drop_table("training_modules")
    op.drop_table("employees")
