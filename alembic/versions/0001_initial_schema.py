"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels = None
depends_on = None

# Enum labels are the Python member names, matching SQLAlchemy's default mapping.
user_role = sa.Enum(
    "ADMIN", "PARTNER", "ASSOCIATE_PARTNER", "MANAGER", "TEAM_MEMBER", name="userrole"
)
frequency = sa.Enum("MONTHLY", "QUARTERLY", "HALF_YEARLY", "YEARLY", name="frequency")
compliance_status = sa.Enum("PENDING", "DONE", "NA", name="compliancestatus")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ── Core tables ───────────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("industry", sa.String(255)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_clients_active_name", "clients", ["is_active", "name"])

    op.create_table(
        "law_groups",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("manager_only", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "user_client_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "client_id", name="uq_user_client_assignment"),
    )
    op.create_index("ix_user_client_assignments_client", "user_client_assignments", ["client_id"])

    op.create_table(
        "client_law_group_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("law_group_id", sa.Integer(), sa.ForeignKey("law_groups.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("client_id", "law_group_id", name="uq_client_law_group_assignment"),
    )
    op.create_index(
        "ix_client_law_group_assignments_law_group", "client_law_group_assignments", ["law_group_id"]
    )

    op.create_table(
        "client_monthly_links",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("period_year", sa.Integer(), nullable=False),
        sa.Column("period_month", sa.Integer(), nullable=False),
        sa.Column("link", sa.String(2048), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("client_id", "period_year", "period_month", name="uq_client_monthly_link"),
    )

    # ── Compliance definitions & deadline cascade ─────────────────────────────

    op.create_table(
        "compliances",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "law_group_id",
            sa.Integer(),
            sa.ForeignKey("law_groups.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("frequency", frequency, nullable=False),
        sa.Column("deadline_day", sa.Integer()),
        sa.Column("deadline_month", sa.Integer()),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_temporary", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("temp_month", sa.Integer()),
        sa.Column("temp_year", sa.Integer()),
        sa.Column("manager_only", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("instruction_text", sa.Text()),
        sa.Column("instruction_video_url", sa.String(2048)),
        *_timestamps(),
    )
    op.create_index("ix_compliances_law_group", "compliances", ["law_group_id"])
    op.create_index(
        "ix_compliances_temp_period", "compliances", ["is_temporary", "temp_year", "temp_month"]
    )

    op.create_table(
        "default_compliance_extensions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "compliance_id",
            sa.Integer(),
            sa.ForeignKey("compliances.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("extension_day", sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "monthly_compliance_overrides",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "compliance_id",
            sa.Integer(),
            sa.ForeignKey("compliances.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("period_year", sa.Integer(), nullable=False),
        sa.Column("period_month", sa.Integer(), nullable=False),
        sa.Column("custom_deadline_day", sa.Integer()),
        *_timestamps(),
        sa.UniqueConstraint(
            "compliance_id", "period_year", "period_month", name="uq_monthly_compliance_override"
        ),
    )

    # ── Status records & period unlocks ───────────────────────────────────────

    op.create_table(
        "client_compliance_status",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "compliance_id",
            sa.Integer(),
            sa.ForeignKey("compliances.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("period_year", sa.Integer(), nullable=False),
        sa.Column("period_month", sa.Integer(), nullable=False),
        sa.Column("status", compliance_status, nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("updated_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps(),
        sa.UniqueConstraint(
            "client_id",
            "compliance_id",
            "period_year",
            "period_month",
            name="uq_client_compliance_status",
        ),
    )
    op.create_index(
        "ix_client_compliance_status_period",
        "client_compliance_status",
        ["period_year", "period_month"],
    )

    op.create_table(
        "month_unlocks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("period_year", sa.Integer(), nullable=False),
        sa.Column("period_month", sa.Integer(), nullable=False),
        sa.Column("unlocked_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("unlocked_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps(),
        sa.UniqueConstraint("period_year", "period_month", name="uq_month_unlock_period"),
    )


def downgrade() -> None:
    op.drop_table("month_unlocks")
    op.drop_index("ix_client_compliance_status_period", table_name="client_compliance_status")
    op.drop_table("client_compliance_status")
    op.drop_table("monthly_compliance_overrides")
    op.drop_table("default_compliance_extensions")
    op.drop_index("ix_compliances_temp_period", table_name="compliances")
    op.drop_index("ix_compliances_law_group", table_name="compliances")
    op.drop_table("compliances")
    op.drop_table("client_monthly_links")
    op.drop_index(
        "ix_client_law_group_assignments_law_group", table_name="client_law_group_assignments"
    )
    op.drop_table("client_law_group_assignments")
    op.drop_index("ix_user_client_assignments_client", table_name="user_client_assignments")
    op.drop_table("user_client_assignments")
    op.drop_table("law_groups")
    op.drop_index("ix_clients_active_name", table_name="clients")
    op.drop_table("clients")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    compliance_status.drop(bind, checkfirst=True)
    frequency.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
