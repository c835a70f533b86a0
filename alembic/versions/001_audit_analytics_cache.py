"""Add audit_log, site_analytics and render_cache.

Revision ID: 001_audit_analytics
Revises: 000_base
Create Date: 2026-10-12 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from apps.api.models.audit_log import AUDIT_ACTIONS, AUDIT_ENTITY_TYPES

revision: str = "001_audit_analytics"
down_revision: Union[str, None] = "000_base"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _in_list(column: str, values: Sequence[str]) -> str:
    return f"{column} IN (" + ", ".join(f"'{v}'" for v in values) + ")"


def upgrade() -> None:
    # 1) audit_log: no FK to sites, entries outlive deleted sites until the retention purge
    op.create_table(
        "audit_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("entity_type", sa.String(32), nullable=False),
        sa.Column("entity_id", sa.String(255), nullable=False),
        sa.Column("actor_id", sa.String(255), nullable=False),
        sa.Column("site_id", sa.String(36), nullable=True),
        sa.Column("details", JSONB(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(_in_list("action", AUDIT_ACTIONS), name="ck_audit_log_action"),
        sa.CheckConstraint(_in_list("entity_type", AUDIT_ENTITY_TYPES), name="ck_audit_log_entity_type"),
    )
    op.create_index("ix_audit_log_site_created", "audit_log", ["site_id", "created_at"], unique=False)
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"], unique=False)

    # 2) site_analytics: one counter row per (site, day, path)
    op.create_table(
        "site_analytics",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("site_id", sa.String(36), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.UniqueConstraint("site_id", "date", "path", name="uq_site_analytics_site_date_path"),
    )
    op.create_index("ix_site_analytics_site_id", "site_analytics", ["site_id"], unique=False)

    # 3) render_cache
    op.create_table(
        "render_cache",
        sa.Column("cache_key", sa.String(512), primary_key=True),
        sa.Column("site_id", sa.String(36), nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("html", sa.Text(), nullable=False),
        sa.Column("content_hash", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_render_cache_site_id", "render_cache", ["site_id"], unique=False)
    op.create_index("ix_render_cache_expires_at", "render_cache", ["expires_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_render_cache_expires_at", table_name="render_cache")
    op.drop_index("ix_render_cache_site_id", table_name="render_cache")
    op.drop_table("render_cache")
    op.drop_index("ix_site_analytics_site_id", table_name="site_analytics")
    op.drop_table("site_analytics")
    op.drop_index("ix_audit_log_created_at", table_name="audit_log")
    op.drop_index("ix_audit_log_site_created", table_name="audit_log")
    op.drop_table("audit_log")
