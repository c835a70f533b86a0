"""Tenant-scoped SQL helpers. All tenant-scoped queries MUST use these.

Provides:
  - tenant_where(model, tenant_id): binary expression for WHERE model.tenant_id == tenant_id
  - select_site_for_tenant(tenant_id): Select on sites with tenant filter applied
  - select_page_for_tenant(tenant_id): Select on pages joined to their site, tenant filter on the site
Pages have no tenant_id column of their own; ownership always goes through sites.
"""

from sqlalchemy import BinaryExpression, Select, select

from apps.api.models.page import Page
from apps.api.models.site import Site


def tenant_where(model: type, tenant_id: str) -> BinaryExpression[bool]:
    """Return WHERE clause: model.tenant_id == tenant_id. Use for filters and joins."""
    col = getattr(model, "tenant_id", None)
    if col is None:
        raise ValueError(f"Model {model.__name__} has no tenant_id column")
    return col == tenant_id


def select_site_for_tenant(tenant_id: str) -> Select[tuple[Site]]:
    """Select from sites with tenant filter. Add .where() for further filters."""
    return select(Site).where(tenant_where(Site, tenant_id))


def select_page_for_tenant(tenant_id: str) -> Select[tuple[Page]]:
    """Select from pages joined to sites, filtered on the owning site's tenant."""
    return select(Page).join(Site, Page.site_id == Site.id).where(tenant_where(Site, tenant_id))
