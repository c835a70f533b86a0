"""Debug endpoint for auth tests. Mounted only when ENV=test.

Echoes the resolved tenant context without touching the database.
"""

from fastapi import APIRouter

from apps.api.services.tenant_context import TenantContextDep

router = APIRouter()


@router.get("/tenant")
async def debug_tenant(ctx: TenantContextDep) -> dict:
    """Return tenant_id and actor_id as resolved by the auth middleware."""
    return {"tenant_id": ctx.tenant_id, "actor_id": ctx.actor_id}
