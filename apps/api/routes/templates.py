"""Template gallery: browse template sites and clone one into a new site."""

from fastapi import APIRouter, BackgroundTasks, Query, Request

from apps.api.schemas.requests import TemplateCloneRequest
from apps.api.schemas.responses import SiteOut, TemplateOut
from apps.api.services import repo
from apps.api.services.audit import audit_in_background
from apps.api.services.tenant_context import TenantContextDep, TenantId

router = APIRouter()


@router.get("", response_model=list[TemplateOut])
async def list_templates(tenant_id: TenantId, category: str | None = Query(None)) -> list[TemplateOut]:
    return [TemplateOut.from_record(t) for t in repo.list_templates(tenant_id, category)]


@router.get("/categories", response_model=list[str])
async def list_categories(tenant_id: TenantId) -> list[str]:
    return repo.list_template_categories(tenant_id)


@router.post("/{template_id}/clone", response_model=SiteOut, status_code=201)
async def clone_template(
    template_id: str,
    body: TemplateCloneRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    """New unpublished site with the template's pages as drafts."""
    site = repo.clone_template(ctx.tenant_id, template_id, body.name, body.subdomain)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_CREATE", "Site", site["id"], site_id=site["id"],
        details={"name": site["name"], "subdomain": site["subdomain"], "template_id": template_id},
    )
    return SiteOut.from_record(site)
