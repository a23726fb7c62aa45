"""create core tables

Revision ID: 20261017_0001
Revises: None
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("parent_organization_id", sa.String(length=36), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.String(length=40), nullable=False),
        sa.Column("updated_at", sa.String(length=40), nullable=False),
    )
    op.create_index("ix_organizations_parent_organization_id", "organizations", ["parent_organization_id"])

    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=True),
        sa.Column("grade_level", sa.String(length=50), nullable=True),
        sa.Column("room_number", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.String(length=40), nullable=False),
        sa.Column("updated_at", sa.String(length=40), nullable=False),
    )
    op.create_index("ix_classes_organization_id", "classes", ["organization_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.String(length=40), nullable=False),
        sa.Column("updated_at", sa.String(length=40), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    op.create_table(
        "substitute_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("requested_by", sa.String(length=36), nullable=False),
        sa.Column("date_needed", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("special_instructions", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="open"),
        sa.Column("assigned_substitute_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.String(length=40), nullable=False),
        sa.Column("updated_at", sa.String(length=40), nullable=False),
    )
    op.create_index("ix_substitute_requests_class_id", "substitute_requests", ["class_id"])
    op.create_index("ix_substitute_requests_date_needed", "substitute_requests", ["date_needed"])
    op.create_index("ix_substitute_requests_status", "substitute_requests", ["status"])
    op.create_index(
        "ix_substitute_requests_assigned_substitute_id",
        "substitute_requests",
        ["assigned_substitute_id"],
    )

    op.create_table(
        "notifications_log",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("request_id", sa.String(length=36), nullable=False),
        sa.Column("notification_type", sa.String(length=32), nullable=False),
        sa.Column("sent_at", sa.String(length=40), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_notifications_log_user_id", "notifications_log", ["user_id"])
    op.create_index("ix_notifications_log_request_id", "notifications_log", ["request_id"])
    op.create_index("ix_notifications_log_sent_at", "notifications_log", ["sent_at"])

    op.create_table(
        "settings",
        sa.Column("key", sa.String(length=100), primary_key=True, nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.String(length=40), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_index("ix_notifications_log_sent_at", table_name="notifications_log")
    op.drop_index("ix_notifications_log_request_id", table_name="notifications_log")
    op.drop_index("ix_notifications_log_user_id", table_name="notifications_log")
    op.drop_table("notifications_log")
    op.drop_index("ix_substitute_requests_assigned_substitute_id", table_name="substitute_requests")
    op.drop_index("ix_substitute_requests_status", table_name="substitute_requests")
    op.drop_index("ix_substitute_requests_date_needed", table_name="substitute_requests")
    op.drop_index("ix_substitute_requests_class_id", table_name="substitute_requests")
    op.drop_table("substitute_requests")
    op.drop_index("ix_users_organization_id", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_classes_organization_id", table_name="classes")
    op.drop_table("classes")
    op.drop_index("ix_organizations_parent_organization_id", table_name="organizations")
    op.drop_table("organizations")
