"""site_analytics model. One row per (site, day, path) with an increment-only view counter."""

from datetime import date as date_type

from sqlalchemy import BigInteger, Date, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from apps.api.models.base import Base


class SiteAnalytics(Base):
    __tablename__ = "site_analytics"
    __table_args__ = (UniqueConstraint("site_id", "date", "path", name="uq_site_analytics_site_date_path"),)

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    site_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
