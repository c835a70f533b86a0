"""audit_log model. Append-only; rows are removed only by the retention purge."""

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from apps.api.models.base import Base, JSONType, utcnow

AUDIT_ACTIONS = (
    "SITE_CREATE",
    "SITE_DELETE",
    "SITE_UPDATE",
    "SITE_PUBLISH",
    "SITE_UNPUBLISH",
    "PAGE_CREATE",
    "PAGE_DELETE",
    "PAGE_UPDATE",
    "PAGE_PUBLISH",
    "DOMAIN_UPDATE",
    "DOMAIN_VERIFY",
    "SUBSCRIPTION_START",
    "SUBSCRIPTION_CANCEL",
)

AUDIT_ENTITY_TYPES = ("Site", "Page", "Domain", "User", "Subscription")


class AuditLog(Base):
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_site_created", "site_id", "created_at"),
        Index("ix_audit_log_created_at", "created_at"),
        CheckConstraint(
            "action IN (" + ", ".join(f"'{a}'" for a in AUDIT_ACTIONS) + ")",
            name="ck_audit_log_action",
        ),
        CheckConstraint(
            "entity_type IN (" + ", ".join(f"'{t}'" for t in AUDIT_ENTITY_TYPES) + ")",
            name="ck_audit_log_entity_type",
        ),
    )

    # SQLite only autoincrements INTEGER PRIMARY KEY.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    site_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
