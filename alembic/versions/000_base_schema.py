"""Base schema: sites and pages.

Migration 001 adds audit_log, site_analytics and render_cache.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "000_base"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1) sites (pages depends on it)
    op.create_table(
        "sites",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subdomain", sa.String(63), nullable=False, unique=True),
        sa.Column("custom_domain", sa.String(253), nullable=True, unique=True),
        sa.Column("styles", JSONB(), nullable=True),
        sa.Column("navigation", JSONB(), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("nav_color", sa.String(32), nullable=True),
        sa.Column("custom_head_code", sa.Text(), nullable=True),
        sa.Column("custom_body_code", sa.Text(), nullable=True),
        sa.Column("is_template", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("template_category", sa.String(64), nullable=True),
        sa.Column("template_description", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ban_reason", sa.String(512), nullable=True),
        sa.Column("banned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_sites_tenant_id", "sites", ["tenant_id", "created_at"], unique=False, if_not_exists=True)
    op.create_index("ix_sites_is_template", "sites", ["is_template"], unique=False, if_not_exists=True)

    # 2) pages: published_content NULL until the first publish
    op.create_table(
        "pages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("site_id", sa.String(36), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, server_default=""),
        sa.Column("draft_content", JSONB(), nullable=True),
        sa.Column("published_content", JSONB(), nullable=True),
        sa.Column("last_published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("seo_title", sa.String(255), nullable=True),
        sa.Column("seo_description", sa.Text(), nullable=True),
        sa.Column("seo_keywords", sa.Text(), nullable=True),
        sa.Column("seo_image", sa.Text(), nullable=True),
        sa.Column("is_home_page", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("site_id", "slug", name="uq_pages_site_slug"),
    )
    op.create_index("ix_pages_site_created", "pages", ["site_id", "created_at"], unique=False, if_not_exists=True)


def downgrade() -> None:
    op.drop_index("ix_pages_site_created", table_name="pages")
    op.drop_table("pages")
    op.drop_index("ix_sites_is_template", table_name="sites")
    op.drop_index("ix_sites_tenant_id", table_name="sites")
    op.drop_table("sites")
