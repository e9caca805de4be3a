"""create users, teachers, batches and substitution requests

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ("admin", "academic", "teacher", "manager", "finance", "state", "center", "resource", "card_admin")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum(*USER_ROLES, name="user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "centers",
        sa.Column("center_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("center_name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "courses",
        sa.Column("course_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
    )

    op.create_table(
        "teachers",
        sa.Column("teacher_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("center", sa.String(length=36), sa.ForeignKey("centers.center_id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_teachers_teacher", "teachers", ["teacher"], unique=True)

    op.create_table(
        "batches",
        sa.Column("batch_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("batch_name", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("time_from", sa.Time(), nullable=True),
        sa.Column("time_to", sa.Time(), nullable=True),
        sa.Column("center", sa.String(length=36), sa.ForeignKey("centers.center_id"), nullable=True),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.course_id"), nullable=True),
        sa.Column("teacher", sa.String(length=36), sa.ForeignKey("teachers.teacher_id"), nullable=True),
        sa.Column("assistant_tutor", sa.String(length=36), sa.ForeignKey("teachers.teacher_id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_batches_teacher", "batches", ["teacher"], unique=False)
    op.create_index("ix_batches_assistant_tutor", "batches", ["assistant_tutor"], unique=False)

    op.create_table(
        "teacher_batch_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("batch_id", sa.String(length=36), sa.ForeignKey("batches.batch_id"), nullable=False),
        sa.Column("main_teacher_id", sa.String(length=36), sa.ForeignKey("teachers.teacher_id"), nullable=False),
        sa.Column("request_type", sa.String(length=20), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("sub_teacher_id", sa.String(length=36), nullable=True),
        sa.Column("approved_by", sa.String(length=36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("date_from <= date_to", name="ck_teacher_batch_requests_date_range"),
    )
    op.create_index("ix_teacher_batch_requests_batch_id", "teacher_batch_requests", ["batch_id"], unique=False)
    op.create_index(
        "ix_teacher_batch_requests_main_teacher_id",
        "teacher_batch_requests",
        ["main_teacher_id"],
        unique=False,
    )
    op.create_index("ix_teacher_batch_requests_status", "teacher_batch_requests", ["status"], unique=False)
    op.create_index(
        "ix_teacher_batch_requests_sub_teacher_id",
        "teacher_batch_requests",
        ["sub_teacher_id"],
        unique=False,
    )

    notification_type = postgresql.ENUM(
        "leave_request",
        "request_approved",
        "substitute_assigned",
        "system",
        name="notification_type",
        create_type=False,
    )
    notification_type.create(op.get_bind(), checkfirst=True)
    op.create_table(
        "teacher_notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher", sa.String(length=36), sa.ForeignKey("teachers.teacher_id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("related_id", sa.String(length=36), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_teacher_notifications_teacher", "teacher_notifications", ["teacher"], unique=False)

    op.create_table(
        "academic_notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("academic_coordinator_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("related_id", sa.String(length=36), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_academic_notifications_academic_coordinator_id",
        "academic_notifications",
        ["academic_coordinator_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_academic_notifications_academic_coordinator_id", table_name="academic_notifications")
    op.drop_table("academic_notifications")
    op.drop_index("ix_teacher_notifications_teacher", table_name="teacher_notifications")
    op.drop_table("teacher_notifications")
    op.drop_index("ix_teacher_batch_requests_sub_teacher_id", table_name="teacher_batch_requests")
    op.drop_index("ix_teacher_batch_requests_status", table_name="teacher_batch_requests")
    op.drop_index("ix_teacher_batch_requests_main_teacher_id", table_name="teacher_batch_requests")
    op.drop_index("ix_teacher_batch_requests_batch_id", table_name="teacher_batch_requests")
    op.drop_table("teacher_batch_requests")
    op.drop_index("ix_batches_assistant_tutor", table_name="batches")
    op.drop_index("ix_batches_teacher", table_name="batches")
    op.drop_table("batches")
    op.drop_index("ix_teachers_teacher", table_name="teachers")
    op.drop_table("teachers")
    op.drop_table("courses")
    op.drop_table("centers")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    sa.Enum(name="notification_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
