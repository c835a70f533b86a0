"""Page management and draft editing endpoints. Tenant from auth middleware only."""

from fastapi import APIRouter, BackgroundTasks, Request

from apps.api.schemas.requests import DraftSaveRequest, PageCreateRequest, PageUpdateRequest
from apps.api.schemas.responses import DeletedResponse, PageChangesOut, PageOut, PageSummaryOut
from apps.api.services import publish, repo
from apps.api.services.audit import audit_in_background
from apps.api.services.tenant_context import TenantContextDep, TenantId

router = APIRouter()


@router.get("/sites/{site_id}/pages", response_model=list[PageSummaryOut])
async def list_pages(site_id: str, tenant_id: TenantId) -> list[PageSummaryOut]:
    """Pages of a site: home page first, then creation order."""
    return [PageSummaryOut.from_record(p) for p in repo.list_pages(tenant_id, site_id)]


@router.post("/sites/{site_id}/pages", response_model=PageOut, status_code=201)
async def create_page(
    site_id: str,
    body: PageCreateRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> PageOut:
    seo = body.model_dump(include={"seo_title", "seo_description", "seo_keywords", "seo_image"}, exclude_none=True)
    page = repo.create_page(ctx.tenant_id, site_id, body.name, body.slug, seo=seo)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "PAGE_CREATE", "Page", page["id"], site_id=site_id,
        details={"name": page["name"], "slug": page["slug"]},
    )
    return PageOut.from_record(page)


@router.get("/pages/{page_id}", response_model=PageOut)
async def get_page(page_id: str, tenant_id: TenantId) -> PageOut:
    return PageOut.from_record(repo.get_page(tenant_id, page_id))


@router.patch("/pages/{page_id}", response_model=PageOut)
async def update_page(
    page_id: str,
    body: PageUpdateRequest,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> PageOut:
    changes = body.model_dump(exclude_unset=True)
    page = repo.update_page(ctx.tenant_id, page_id, changes)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "PAGE_UPDATE", "Page", page_id, site_id=page["site_id"],
        details={"fields": sorted(changes)},
    )
    return PageOut.from_record(page)


@router.delete("/pages/{page_id}", response_model=DeletedResponse)
async def delete_page(
    page_id: str,
    ctx: TenantContextDep,
    request: Request,
    background_tasks: BackgroundTasks,
) -> DeletedResponse:
    """Delete a page. 403 for the home page."""
    page = repo.delete_page(ctx.tenant_id, page_id)
    audit_in_background(
        background_tasks, request, ctx.actor_id, "PAGE_DELETE", "Page", page_id, site_id=page["site_id"],
        details={"name": page["name"], "slug": page["slug"]},
    )
    return DeletedResponse(id=page_id)


@router.put("/pages/{page_id}/draft", response_model=PageSummaryOut)
async def save_draft(page_id: str, body: DraftSaveRequest, tenant_id: TenantId) -> PageSummaryOut:
    """Overwrite the draft block array. Published content is untouched until the next publish."""
    return PageSummaryOut.from_record(publish.save_draft(tenant_id, page_id, body.content))


@router.get("/pages/{page_id}/changes", response_model=PageChangesOut)
async def get_changes(page_id: str, tenant_id: TenantId) -> PageChangesOut:
    return PageChangesOut(page_id=page_id, has_unpublished_changes=publish.has_unpublished_changes(tenant_id, page_id))
