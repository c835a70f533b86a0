"""render_cache model. Rendered public HTML per site route; wiped on publish."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from apps.api.models.base import Base, utcnow


class RenderCache(Base):
    """Cached public page HTML keyed by site_id:path."""

    __tablename__ = "render_cache"
    __table_args__ = (
        Index("ix_render_cache_site_id", "site_id"),
        Index("ix_render_cache_expires_at", "expires_at"),
    )

    cache_key: Mapped[str] = mapped_column(String(512), primary_key=True)
    site_id: Mapped[str] = mapped_column(String(36), nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    html: Mapped[str] = mapped_column(Text, nullable=False)
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
