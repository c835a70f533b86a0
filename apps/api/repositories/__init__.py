"""Repository layer: tenant-scoped queries and helpers."""

from apps.api.repositories.tenant_filters import (
    select_page_for_tenant,
    select_site_for_tenant,
    tenant_where,
)

__all__ = [
    "tenant_where",
    "select_site_for_tenant",
    "select_page_for_tenant",
]
