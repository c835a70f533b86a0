"""Server-side tenant context injection.

Tenant is taken from auth (Authorization header: Bearer tenant:<id> or JWT tenant_id claim).
Client-provided tenant_id in query/body is explicitly ignored.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from apps.api.config import config


@dataclass(frozen=True)
class TenantContext:
    """Tenant context from auth. actor_id is the JWT sub, else the tenant itself."""

    tenant_id: str
    actor_id: str


def get_tenant_id(request: Request) -> str:
    """FastAPI dependency: return tenant_id from request.state (set by auth middleware).
    Raises 401 if missing. Client-provided tenant_id in query/body is ignored."""
    tenant_id = getattr(request.state, "tenant_id", None)
    if not tenant_id or not str(tenant_id).strip():
        raise HTTPException(status_code=401, detail="Tenant ID required")
    return str(tenant_id).strip()


def get_tenant_context(request: Request) -> TenantContext:
    """FastAPI dependency: return TenantContext from request.state."""
    tenant_id = get_tenant_id(request)
    actor_id = getattr(request.state, "actor_id", None) or tenant_id
    return TenantContext(tenant_id=tenant_id, actor_id=actor_id)


def require_admin_tenant(request: Request) -> TenantContext:
    """FastAPI dependency for moderation routes: tenant must be listed in ADMIN_TENANTS."""
    ctx = get_tenant_context(request)
    if ctx.tenant_id.lower() not in config.ADMIN_TENANTS:
        raise HTTPException(status_code=403, detail="Admin access required")
    return ctx


# Type aliases for Depends()
TenantId = Annotated[str, Depends(get_tenant_id)]
TenantContextDep = Annotated[TenantContext, Depends(get_tenant_context)]
AdminContextDep = Annotated[TenantContext, Depends(require_admin_tenant)]
