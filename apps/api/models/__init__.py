"""SQLAlchemy models. Sites carry tenant_id; pages are tenant-scoped through their site."""

from apps.api.models.audit_log import AuditLog
from apps.api.models.base import Base
from apps.api.models.page import Page
from apps.api.models.render_cache import RenderCache
from apps.api.models.site import Site
from apps.api.models.site_analytics import SiteAnalytics

__all__ = [
    "AuditLog",
    "Base",
    "Page",
    "RenderCache",
    "Site",
    "SiteAnalytics",
]
