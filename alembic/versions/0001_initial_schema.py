"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _named_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False, unique=True),
        *_timestamps(),
    )


def upgrade() -> None:
    for name in ("sections", "locations", "designations"):
        _named_table(name)

    op.create_table(
        "employees",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("grade", sa.String(30), nullable=True),
        sa.Column("section_name", sa.String(150), nullable=True),
        sa.Column("designation", sa.String(150), nullable=True),
        sa.Column("sub_department", sa.String(150), nullable=True),
        sa.Column("location", sa.String(150), nullable=True),
        sa.Column("mobile", sa.String(30), nullable=True),
        sa.Column("years_of_experience", sa.Integer, nullable=True),
        sa.Column("manager_name", sa.String(255), nullable=True),
        sa.Column("manager_email", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_employees_name", "employees", ["name"])
    op.create_index("ix_employees_email", "employees", ["email"])

    op.create_table(
        "programs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("target_grades", sa.JSON, nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "program_sections",
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("section_id", sa.String(36), sa.ForeignKey("sections.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "nomination_batches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_nomination_batches_program_id", "nomination_batches", ["program_id"])
    op.create_index("ix_nomination_batches_status", "nomination_batches", ["status"])

    op.create_table(
        "nominations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("emp_id", sa.String(50), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "batch_id", sa.String(36), sa.ForeignKey("nomination_batches.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("manager_approval_status", sa.String(30), nullable=False),
        sa.Column("manager_rejection_reason", sa.Text, nullable=True),
        sa.Column("source", sa.String(30), nullable=False),
        sa.Column("justification", sa.Text, nullable=True),
        sa.Column("nominator_name", sa.String(255), nullable=True),
        sa.Column("nominator_email", sa.String(255), nullable=True),
        *_timestamps(),
    )
    for column in ("emp_id", "program_id", "batch_id", "status"):
        op.create_index(f"ix_nominations_{column}", "nominations", [column])

    op.create_table(
        "training_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("program_name", sa.String(255), nullable=False),
        sa.Column("trainer_name", sa.String(255), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("start_time", sa.String(20), nullable=False),
        sa.Column("end_time", sa.String(20), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("topics", sa.Text, nullable=True),
        sa.Column("template_type", sa.String(50), nullable=False),
        sa.Column("feedback_creation_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("send_feedback_automatically", sa.Boolean, nullable=False),
        sa.Column("emails_sent", sa.Boolean, nullable=False),
        sa.Column("feedback_reminder_sent", sa.Boolean, nullable=False),
        sa.Column(
            "nomination_batch_id",
            sa.String(36),
            sa.ForeignKey("nomination_batches.id", ondelete="SET NULL"),
            nullable=True,
            unique=True,
        ),
        *_timestamps(),
    )
    for column in ("program_name", "trainer_name", "end_date", "feedback_creation_date"):
        op.create_index(f"ix_training_sessions_{column}", "training_sessions", [column])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "session_id", sa.String(36), sa.ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("employee_name", sa.String(255), nullable=False),
        sa.Column("employee_email", sa.String(255), nullable=False),
        sa.Column("emp_id", sa.String(50), nullable=True),
        sa.Column("manager_name", sa.String(255), nullable=True),
        sa.Column("manager_email", sa.String(255), nullable=True),
        *[
            sa.Column(name, sa.Integer, nullable=False, server_default="0")
            for name in (
                "pre_training_rating",
                "post_training_rating",
                "training_rating",
                "content_rating",
                "trainer_rating",
                "material_rating",
                "recommendation_rating",
            )
        ],
        sa.Column("topics_learned", sa.Text, nullable=True),
        sa.Column("action_plan", sa.Text, nullable=True),
        sa.Column("suggestions", sa.Text, nullable=True),
        *[
            sa.Column(name, sa.Integer, nullable=True)
            for name in ("q1_relevance", "q2_application", "q3_performance", "q4_influence", "q5_efficiency")
        ],
        sa.Column("average_rating", sa.Float, nullable=True),
        sa.Column("manager_agrees", sa.String(10), nullable=True),
        sa.Column("manager_comment", sa.Text, nullable=True),
        sa.Column("status", sa.String(30), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("session_id", "employee_email", name="uq_enrollment_session_email"),
    )
    for column in ("session_id", "emp_id", "status"):
        op.create_index(f"ix_enrollments_{column}", "enrollments", [column])

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "trainers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("expertise", sa.String(255), nullable=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "cohorts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(30), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_cohorts_status", "cohorts", ["status"])
    op.create_table(
        "cohort_programs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("cohort_id", sa.String(36), sa.ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("seq", sa.Integer, nullable=False),
        sa.Column(
            "session_id", sa.String(36), sa.ForeignKey("training_sessions.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("status", sa.String(30), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_cohort_programs_cohort_id", "cohort_programs", ["cohort_id"])
    op.create_table(
        "cohort_members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("cohort_id", sa.String(36), sa.ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("employee_id", sa.String(50), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("cohort_id", "employee_id", name="uq_cohort_member"),
    )
    op.create_index("ix_cohort_members_cohort_id", "cohort_members", ["cohort_id"])
    op.create_table(
        "cohort_feedback",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("cohort_id", sa.String(36), sa.ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("emp_id", sa.String(50), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comments", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("cohort_id", "emp_id", name="uq_cohort_feedback"),
    )
    op.create_index("ix_cohort_feedback_cohort_id", "cohort_feedback", ["cohort_id"])

    op.create_table(
        "rate_limits",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("key", sa.String(255), nullable=False, unique=True),
        sa.Column("count", sa.Integer, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "audit_trail",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ip_address", sa.String(50), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column("path", sa.String(500), nullable=False),
        sa.Column("status_code", sa.Integer, nullable=False),
        sa.Column("duration_ms", sa.Integer, nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.String(50), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    for column in ("status_code", "entity_type", "entity_id", "created_at"):
        op.create_index(f"ix_audit_trail_{column}", "audit_trail", [column])


def downgrade() -> None:
    for table in (
        "audit_trail",
        "rate_limits",
        "cohort_feedback",
        "cohort_members",
        "cohort_programs",
        "cohorts",
        "trainers",
        "users",
        "enrollments",
        "training_sessions",
        "nominations",
        "nomination_batches",
        "program_sections",
        "programs",
        "employees",
        "designations",
        "locations",
        "sections",
    ):
        op.drop_table(table)
