"""Public site rendering, draft preview and view tracking.

/site/... and POST /analytics are exempt from auth (see auth.is_public_request); /preview needs a tenant.
"""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError as PydanticValidationError

from apps.api.schemas.requests import TrackViewRequest
from apps.api.schemas.responses import TrackViewResponse
from apps.api.services import analytics, renderer, repo
from apps.api.services.registry import BlockRegistry, RegistryDep
from apps.api.services.resolver import ContentMode, ResolutionStatus, select_content, serve_public_page
from apps.api.services.tenant_context import TenantId

logger = logging.getLogger(__name__)

router = APIRouter()


def _render_public(hostname: str, path: str, registry: BlockRegistry, background_tasks: BackgroundTasks) -> HTMLResponse:
    page = serve_public_page(hostname, path, registry)
    if page.resolution == ResolutionStatus.FOUND and page.site_id:
        background_tasks.add_task(analytics.track_view, page.site_id, page.path)
    headers = {"X-Render-Cache": "hit" if page.from_cache else "miss"}
    return HTMLResponse(content=page.html, status_code=page.status_code, headers=headers)


@router.get("/site/{hostname}", response_class=HTMLResponse)
async def render_site_root(hostname: str, registry: RegistryDep, background_tasks: BackgroundTasks) -> HTMLResponse:
    """Published home page for a subdomain or custom domain."""
    return _render_public(hostname, "/", registry, background_tasks)


@router.get("/site/{hostname}/{path:path}", response_class=HTMLResponse)
async def render_site_path(
    hostname: str,
    path: str,
    registry: RegistryDep,
    background_tasks: BackgroundTasks,
) -> HTMLResponse:
    """Published page by exact slug. 404 page for unknown paths, 403 for suspended sites."""
    return _render_public(hostname, path, registry, background_tasks)


@router.get("/preview/{site_id}/{page_id}", response_class=HTMLResponse)
async def preview_page(site_id: str, page_id: str, tenant_id: TenantId, registry: RegistryDep) -> HTMLResponse:
    """Render the page's draft content with the site's current theme. Never cached. No draft -> Coming Soon."""
    site, page = repo.get_preview_target(tenant_id, site_id, page_id)
    content = select_content(page, ContentMode.DRAFT)
    if content is None:
        html = renderer.render_coming_soon(site)
    else:
        html = renderer.render_page_html(site, page, content, registry, preview=True)
    return HTMLResponse(content=html, headers={"Cache-Control": "no-store"})


@router.post("/analytics", response_model=TrackViewResponse)
async def track_view(request: Request, background_tasks: BackgroundTasks) -> TrackViewResponse:
    """Record a page view. Always answers success; tracking problems are only logged."""
    try:
        payload = await request.json()
        body = TrackViewRequest.model_validate(payload)
    except (json.JSONDecodeError, UnicodeDecodeError, PydanticValidationError):
        logger.info("Ignoring malformed analytics payload")
        return TrackViewResponse(success=True)
    if body.site_id:
        background_tasks.add_task(analytics.track_view, body.site_id, body.path)
    return TrackViewResponse(success=True)

