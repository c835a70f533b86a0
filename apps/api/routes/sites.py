"""Site management endpoints. Tenant from auth middleware only."""

from fastapi import APIRouter, BackgroundTasks, Query, Request

from apps.api.schemas.requests import (
    SiteCodeRequest,
    SiteCreateRequest,
    SiteDomainRequest,
    SiteNavigationRequest,
    SiteStylesRequest,
    SiteTemplateRequest,
    SiteUpdateRequest,
)
from apps.api.schemas.responses import (
    AuditLogOut,
    DeletedResponse,
    PublishResponse,
    SiteAnalyticsOut,
    SiteOut,
    ThemeOut,
    UnpublishResponse,
)
from apps.api.services import analytics, publish, repo
from apps.api.services.audit import audit_in_background
from apps.api.services.navigation import build_navigation
from apps.api.services.tenant_context import TenantContextDep, TenantId
from apps.api.services.theme import build_theme

router = APIRouter()


@router.post("", response_model=SiteOut, status_code=201)
async def create_site(
    body: SiteCreateRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    """Create a site with an empty, unpublished home page."""
    site = repo.create_site(
        ctx.tenant_id,
        body.name,
        body.subdomain,
        description=body.description,
        custom_domain=body.custom_domain,
    )
    audit_in_background(
        background_tasks,
        request,
        ctx.actor_id,
        "SITE_CREATE",
        "Site",
        site["id"],
        site_id=site["id"],
        details={"name": site["name"], "subdomain": site["subdomain"]},
    )
    return SiteOut.from_record(site)


@router.get("", response_model=list[SiteOut])
async def list_sites(tenant_id: TenantId) -> list[SiteOut]:
    return [SiteOut.from_record(s) for s in repo.list_sites(tenant_id)]


@router.get("/{site_id}", response_model=SiteOut)
async def get_site(site_id: str, tenant_id: TenantId) -> SiteOut:
    return SiteOut.from_record(repo.get_site(tenant_id, site_id))


@router.patch("/{site_id}", response_model=SiteOut)
async def update_site(
    site_id: str,
    body: SiteUpdateRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    changes = body.model_dump(exclude_unset=True)
    site = repo.update_site_settings(ctx.tenant_id, site_id, changes)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_UPDATE", "Site", site_id, site_id=site_id,
        details={"fields": sorted(changes)},
    )
    return SiteOut.from_record(site)


@router.delete("/{site_id}", response_model=DeletedResponse)
async def delete_site(
    site_id: str,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> DeletedResponse:
    """Delete a site and all of its pages."""
    site = repo.delete_site(ctx.tenant_id, site_id)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_DELETE", "Site", site_id, site_id=site_id,
        details={"name": site["name"], "subdomain": site["subdomain"]},
    )
    return DeletedResponse(id=site_id)


@router.patch("/{site_id}/domain", response_model=SiteOut)
async def update_domain(
    site_id: str,
    body: SiteDomainRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    """Change subdomain and/or custom domain. 422 on invalid format, 409 when taken."""
    changes = body.model_dump(exclude_unset=True)
    site = repo.update_site_domain(ctx.tenant_id, site_id, changes)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "DOMAIN_UPDATE", "Domain", site_id, site_id=site_id,
        details={"subdomain": site["subdomain"], "custom_domain": site["custom_domain"]},
    )
    return SiteOut.from_record(site)


@router.patch("/{site_id}/styles", response_model=SiteOut)
async def update_styles(
    site_id: str,
    body: SiteStylesRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    site = repo.update_site_styles(ctx.tenant_id, site_id, body.styles)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_UPDATE", "Site", site_id, site_id=site_id,
        details={"fields": ["styles"]},
    )
    return SiteOut.from_record(site)


@router.patch("/{site_id}/navigation", response_model=SiteOut)
async def update_navigation(
    site_id: str,
    body: SiteNavigationRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    changes = body.model_dump(exclude_unset=True)
    if "navigation" in changes and changes["navigation"] is None:
        changes["navigation"] = []
    site = repo.update_site_navigation(ctx.tenant_id, site_id, changes)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_UPDATE", "Site", site_id, site_id=site_id,
        details={"fields": sorted(changes)},
    )
    return SiteOut.from_record(site)


@router.patch("/{site_id}/code-injection", response_model=SiteOut)
async def update_code_injection(
    site_id: str,
    body: SiteCodeRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> SiteOut:
    """Custom head/body HTML injected verbatim into every rendered page of the site."""
    changes = body.model_dump(exclude_unset=True)
    site = repo.update_site_code(ctx.tenant_id, site_id, changes)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_UPDATE", "Site", site_id, site_id=site_id,
        details={"fields": sorted(changes)},
    )
    return SiteOut.from_record(site)


@router.patch("/{site_id}/template", response_model=SiteOut)
async def update_template_settings(site_id: str, body: SiteTemplateRequest, tenant_id: TenantId) -> SiteOut:
    return SiteOut.from_record(repo.update_site_template(tenant_id, site_id, body.model_dump(exclude_unset=True)))


@router.post("/{site_id}/publish", response_model=PublishResponse)
async def publish_site(
    site_id: str,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> PublishResponse:
    """Publish all pages atomically. 404 for a missing site; any other failed publish answers 200 with success=false."""
    result = publish.publish_site(ctx.tenant_id, site_id)
    if result.success:
        audit_in_background(
            background_tasks, request, ctx.actor_id, "SITE_PUBLISH", "Site", site_id, site_id=site_id,
            details={
                "pages_published": result.pages_published,
                "pages_skipped": result.pages_skipped,
                "published_at": result.published_at.isoformat(),
            },
        )
    return PublishResponse(
        success=result.success,
        message=result.message,
        site_url=result.site_url,
        pages_published=result.pages_published,
        pages_skipped=result.pages_skipped,
        error=result.error,
    )


@router.post("/{site_id}/unpublish", response_model=UnpublishResponse)
async def unpublish_site(
    site_id: str,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> UnpublishResponse:
    cleared = publish.unpublish_site(ctx.tenant_id, site_id)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "SITE_UNPUBLISH", "Site", site_id, site_id=site_id,
        details={"pages_unpublished": cleared},
    )
    return UnpublishResponse(success=True, pages_unpublished=cleared)


@router.get("/{site_id}/theme", response_model=ThemeOut)
async def get_theme(site_id: str, tenant_id: TenantId) -> ThemeOut:
    """Resolved theme tokens and navigation exactly as the renderer will inject them."""
    site = repo.get_site(tenant_id, site_id)
    theme = build_theme(site["styles"])
    return ThemeOut(
        variables=theme.css_variables(),
        css=theme.to_css(),
        font_url=theme.font_stylesheet_url(),
        navigation=[link.to_dict() for link in build_navigation(site["navigation"])],
    )


@router.get("/{site_id}/audit-logs", response_model=list[AuditLogOut])
async def list_audit_logs(
    site_id: str,
    tenant_id: TenantId,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> list[AuditLogOut]:
    """Audit trail for a site, newest first."""
    rows = repo.list_audit_logs(tenant_id, site_id, limit=limit, offset=offset)
    return [AuditLogOut.from_record(r) for r in rows]


@router.get("/{site_id}/analytics", response_model=SiteAnalyticsOut)
async def get_analytics(
    site_id: str,
    tenant_id: TenantId,
    days: int = Query(30, ge=1, le=365),
) -> SiteAnalyticsOut:
    return SiteAnalyticsOut(**analytics.site_summary(tenant_id, site_id, days))
