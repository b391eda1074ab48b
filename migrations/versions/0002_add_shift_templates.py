"""Add shift templates, versions, shift types and schedules.

Revision ID: 0002_add_shift_templates
Revises: 0001_initial
Create Date: 2026-10-07
"""

from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0002_add_shift_templates"
down_revision: str | None = "0001_initial"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "shift_templates",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shift_templates_owner_user_id", "shift_templates", ["owner_user_id"], unique=False)
    op.create_index(
        "uq_shift_templates_owner_live",
        "shift_templates",
        ["owner_user_id"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "shift_template_versions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("template_id", sa.Uuid(), nullable=False),
        sa.Column("version_no", sa.Integer(), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("created_by_user_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("version_no >= 1", name="ck_shift_template_versions_version_no"),
        sa.ForeignKeyConstraint(["template_id"], ["shift_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("template_id", "version_no", name="uq_shift_template_versions_template_no"),
        sa.UniqueConstraint("template_id", "effective_from", name="uq_shift_template_versions_template_from"),
    )
    op.create_index(
        "ix_shift_template_versions_template_from",
        "shift_template_versions",
        ["template_id", "effective_from"],
        unique=False,
    )

    op.create_table(
        "shift_types",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("template_id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=10), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("color", sa.BigInteger(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["template_id"], ["shift_templates.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shift_types_template_code", "shift_types", ["template_id", "code"], unique=False)

    op.create_table(
        "shift_type_schedules",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("shift_type_id", sa.Uuid(), nullable=False),
        sa.Column("template_version_id", sa.Uuid(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("crosses_midnight", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(start_time IS NULL AND end_time IS NULL) OR (start_time IS NOT NULL AND end_time IS NOT NULL)",
            name="ck_shift_type_schedules_time_pair",
        ),
        sa.CheckConstraint("duration_minutes >= 0", name="ck_shift_type_schedules_duration"),
        sa.ForeignKeyConstraint(["shift_type_id"], ["shift_types.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["template_version_id"], ["shift_template_versions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("template_version_id", "shift_type_id", name="uq_shift_type_schedules_version_type"),
    )
    op.create_index("ix_shift_type_schedules_shift_type", "shift_type_schedules", ["shift_type_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_shift_type_schedules_shift_type", table_name="shift_type_schedules")
    op.drop_table("shift_type_schedules")
    op.drop_index("ix_shift_types_template_code", table_name="shift_types")
    op.drop_table("shift_types")
    op.drop_index("ix_shift_template_versions_template_from", table_name="shift_template_versions")
    op.drop_table("shift_template_versions")
    op.drop_index("uq_shift_templates_owner_live", table_name="shift_templates")
    op.drop_index("ix_shift_templates_owner_user_id", table_name="shift_templates")
    op.drop_table("shift_templates")
