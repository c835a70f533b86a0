"""sites model. Tenant-owned website addressed by subdomain or custom domain."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from apps.api.models.base import Base, JSONType, new_id, utcnow


class Site(Base):
    __tablename__ = "sites"
    __table_args__ = (
        Index("ix_sites_tenant_id", "tenant_id", "created_at"),
        Index("ix_sites_is_template", "is_template"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)  # indexed via __table_args__
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    subdomain: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)
    custom_domain: Mapped[str | None] = mapped_column(String(253), nullable=True, unique=True)
    styles: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    navigation: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    nav_color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    custom_head_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_body_code: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    template_category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    template_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ban_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    pages = relationship(
        "Page",
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
