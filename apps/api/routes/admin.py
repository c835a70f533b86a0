"""Moderation endpoints. Caller's tenant must be listed in ADMIN_TENANTS."""

import logging

from fastapi import APIRouter, BackgroundTasks, Request

from apps.api.schemas.requests import BanRequest
from apps.api.schemas.responses import SiteOut
from apps.api.services import repo
from apps.api.services.audit import audit_in_background
from apps.api.services.tenant_context import AdminContextDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sites/{site_id}/ban", response_model=SiteOut)
async def ban_site(
    site_id: str,
    body: BanRequest,
    ctx: AdminContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    """Suspend a site. Its public routes answer 403 until unbanned."""
    site = repo.set_site_ban(site_id, True, body.reason)
    logger.warning("site banned site_id=%s by=%s reason=%s", site_id, ctx.tenant_id, body.reason)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_UPDATE", "Site", site_id, site_id=site_id,
        details={"banned": True, "reason": body.reason},
    )
    return SiteOut.from_record(site)


@router.post("/sites/{site_id}/unban", response_model=SiteOut)
async def unban_site(
    site_id: str,
    ctx: AdminContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    site = repo.set_site_ban(site_id, False)
    logger.info("site unbanned site_id=%s by=%s", site_id, ctx.tenant_id)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_UPDATE", "Site", site_id, site_id=site_id,
        details={"banned": False},
    )
    return SiteOut.from_record(site)
