"""Repository layer. Tenant-scoped functions take tenant_id as first argument; guard raises if None/empty.

RULE: Repo is the ONLY place allowed to run DB reads/writes (session.execute, get_db).
All tenant-scoped queries MUST use tenant_filters (select_*_for_tenant / tenant_where).

GUARD: Every tenant-scoped function MUST call require_tenant_id(tenant_id) before any DB access.
Public reads (hostname resolution, templates, analytics ingestion) and platform jobs
(moderation, audit retention) are grouped at the end and say so in their docstrings.
"""

import copy
import logging
import re
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from apps.api.db import get_db
from apps.api.models.audit_log import AuditLog
from apps.api.models.page import Page
from apps.api.models.site import Site
from apps.api.models.site_analytics import SiteAnalytics
from apps.api.repositories.tenant_filters import select_page_for_tenant, select_site_for_tenant
from apps.api.services import render_cache
from apps.api.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from apps.api.services.tenant_guard import require_tenant_id
from apps.api.services.url_utils import (
    normalize_custom_domain,
    normalize_subdomain,
    site_public_url,
    validate_slug,
)
from apps.api.utils.hashing import has_content_changed

logger = logging.getLogger(__name__)

HOME_SLUGS = ("home", "")
NAV_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

SITE_SETTINGS_FIELDS = frozenset({"name", "description"})
SITE_NAVIGATION_FIELDS = frozenset({"navigation", "logo_url", "nav_color"})
SITE_CODE_FIELDS = frozenset({"custom_head_code", "custom_body_code"})
SITE_TEMPLATE_FIELDS = frozenset({"is_template", "template_category", "template_description", "thumbnail_url"})
PAGE_FIELDS = frozenset({"name", "slug", "seo_title", "seo_description", "seo_keywords", "seo_image"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _site_dict(site: Site) -> dict[str, Any]:
    return {
        "id": site.id,
        "tenant_id": site.tenant_id,
        "name": site.name,
        "description": site.description,
        "subdomain": site.subdomain,
        "custom_domain": site.custom_domain,
        "url": site_public_url(site.subdomain, site.custom_domain),
        "styles": copy.deepcopy(site.styles) if site.styles is not None else {},
        "navigation": copy.deepcopy(site.navigation) if site.navigation is not None else [],
        "logo_url": site.logo_url,
        "nav_color": site.nav_color,
        "custom_head_code": site.custom_head_code,
        "custom_body_code": site.custom_body_code,
        "is_template": site.is_template,
        "template_category": site.template_category,
        "template_description": site.template_description,
        "thumbnail_url": site.thumbnail_url,
        "is_banned": site.is_banned,
        "ban_reason": site.ban_reason,
        "banned_at": site.banned_at,
        "created_at": site.created_at,
        "updated_at": site.updated_at,
    }


def _page_dict(page: Page, *, include_content: bool = True) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": page.id,
        "site_id": page.site_id,
        "name": page.name,
        "slug": page.slug,
        "path": page.path,
        "is_home_page": page.is_home_page,
        "seo_title": page.seo_title,
        "seo_description": page.seo_description,
        "seo_keywords": page.seo_keywords,
        "seo_image": page.seo_image,
        "last_published_at": page.last_published_at,
        "is_published": page.published_content is not None,
        "has_unpublished_changes": has_content_changed(page.draft_content, page.published_content),
        "created_at": page.created_at,
        "updated_at": page.updated_at,
    }
    if include_content:
        out["draft_content"] = copy.deepcopy(page.draft_content)
        out["published_content"] = copy.deepcopy(page.published_content)
    return out


def _load_site(session: Session, tenant_id: str, site_id: str) -> Site:
    site = session.scalars(select_site_for_tenant(tenant_id).where(Site.id == site_id)).first()
    if site is None:
        raise NotFoundError("Site", site_id)
    return site


def _load_page(session: Session, tenant_id: str, page_id: str) -> Page:
    page = session.scalars(select_page_for_tenant(tenant_id).where(Page.id == page_id)).first()
    if page is None:
        raise NotFoundError("Page", page_id)
    return page


def _ordered_pages(session: Session, site_id: str) -> list[Page]:
    """Pages of a site, home page first, then creation order (ties broken by id)."""
    stmt = (
        select(Page)
        .where(Page.site_id == site_id)
        .order_by(Page.is_home_page.desc(), Page.created_at, Page.id)
    )
    return list(session.scalars(stmt).all())


def _ensure_subdomain_free(session: Session, subdomain: str, *, exclude_site_id: str | None = None) -> None:
    stmt = select(Site.id).where(func.lower(Site.subdomain) == subdomain.lower())
    if exclude_site_id:
        stmt = stmt.where(Site.id != exclude_site_id)
    if session.execute(stmt).first() is not None:
        raise ConflictError("subdomain", "This subdomain is already taken")


def _ensure_custom_domain_free(session: Session, domain: str, *, exclude_site_id: str | None = None) -> None:
    stmt = select(Site.id).where(func.lower(Site.custom_domain) == domain.lower())
    if exclude_site_id:
        stmt = stmt.where(Site.id != exclude_site_id)
    if session.execute(stmt).first() is not None:
        raise ConflictError("custom_domain", "This domain is already in use")


def _ensure_slug_free(session: Session, site_id: str, slug: str, *, exclude_page_id: str | None = None) -> None:
    stmt = select(Page.id).where(Page.site_id == site_id, Page.slug == slug)
    if exclude_page_id:
        stmt = stmt.where(Page.id != exclude_page_id)
    if session.execute(stmt).first() is not None:
        raise ConflictError("slug", "A page with this slug already exists")


def _conflict_from_integrity(exc: IntegrityError) -> ConflictError:
    """Map a unique-constraint violation that slipped past the pre-checks (concurrent writer)."""
    message = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    if "custom_domain" in message:
        return ConflictError("custom_domain", "This domain is already in use")
    if "slug" in message:
        return ConflictError("slug", "A page with this slug already exists")
    return ConflictError("subdomain", "This subdomain is already taken")


def _new_home_page(site_id: str, *, draft_content: list | None = None) -> Page:
    return Page(
        site_id=site_id,
        name="Home",
        slug="",
        is_home_page=True,
        draft_content=draft_content if draft_content is not None else [],
        published_content=None,
    )


# --- Sites ---


def create_site(
    tenant_id: str | None,
    name: str,
    subdomain: str,
    *,
    description: str | None = None,
    custom_domain: str | None = None,
) -> dict[str, Any]:
    """Create a site and its root home page (empty draft, never published)."""
    tenant_id = require_tenant_id(tenant_id)
    if not name or not name.strip():
        raise ValidationError("name", "Site name is required")
    subdomain = normalize_subdomain(subdomain)
    custom_domain = normalize_custom_domain(custom_domain)
    try:
        with get_db() as session:
            _ensure_subdomain_free(session, subdomain)
            if custom_domain:
                _ensure_custom_domain_free(session, custom_domain)
            site = Site(
                tenant_id=tenant_id,
                name=name.strip(),
                description=description,
                subdomain=subdomain,
                custom_domain=custom_domain,
                styles={},
                navigation=[],
            )
            session.add(site)
            session.flush()
            session.add(_new_home_page(site.id))
            session.flush()
            return _site_dict(site)
    except IntegrityError as exc:
        raise _conflict_from_integrity(exc) from exc


def list_sites(tenant_id: str | None) -> list[dict[str, Any]]:
    """Sites owned by tenant, newest first."""
    tenant_id = require_tenant_id(tenant_id)
    stmt = select_site_for_tenant(tenant_id).order_by(Site.created_at.desc(), Site.id)
    with get_db() as session:
        return [_site_dict(s) for s in session.scalars(stmt).all()]


def get_site(tenant_id: str | None, site_id: str) -> dict[str, Any]:
    """Site by id for tenant. Another tenant's site raises NotFoundError."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        return _site_dict(_load_site(session, tenant_id, site_id))


def delete_site(tenant_id: str | None, site_id: str) -> dict[str, Any]:
    """Delete a site; pages cascade. Returns the deleted site's summary."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        summary = _site_dict(site)
        render_cache.invalidate_site(session, site.id)
        session.delete(site)
        return summary


def _update_site_fields(
    tenant_id: str,
    site_id: str,
    changes: dict[str, Any],
    allowed: frozenset[str],
) -> dict[str, Any]:
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(sorted(unknown)[0], "Field cannot be updated here")
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        for key, value in changes.items():
            setattr(site, key, copy.deepcopy(value))
        site.updated_at = _utcnow()
        render_cache.invalidate_site(session, site.id)
        session.flush()
        return _site_dict(site)


def update_site_settings(tenant_id: str | None, site_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Update name/description."""
    tenant_id = require_tenant_id(tenant_id)
    if "name" in changes and (not changes["name"] or not str(changes["name"]).strip()):
        raise ValidationError("name", "Site name is required")
    if "name" in changes:
        changes = {**changes, "name": str(changes["name"]).strip()}
    return _update_site_fields(tenant_id, site_id, changes, SITE_SETTINGS_FIELDS)


def update_site_styles(tenant_id: str | None, site_id: str, styles: dict[str, Any]) -> dict[str, Any]:
    """Replace the site's styles object. Values are sanitized at render time, not here."""
    tenant_id = require_tenant_id(tenant_id)
    if not isinstance(styles, dict):
        raise ValidationError("styles", "Styles must be an object")
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        site.styles = copy.deepcopy(styles)
        site.updated_at = _utcnow()
        render_cache.invalidate_site(session, site.id)
        session.flush()
        return _site_dict(site)


def update_site_navigation(tenant_id: str | None, site_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Update navigation links, logo and nav color."""
    tenant_id = require_tenant_id(tenant_id)
    if "navigation" in changes and not isinstance(changes["navigation"], list):
        raise ValidationError("navigation", "Navigation must be an array")
    nav_color = changes.get("nav_color")
    if nav_color and not NAV_COLOR_PATTERN.match(str(nav_color)):
        raise ValidationError("nav_color", "Nav color must be a hex color like #1e40af")
    return _update_site_fields(tenant_id, site_id, changes, SITE_NAVIGATION_FIELDS)


def update_site_code(tenant_id: str | None, site_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Update custom head/body code injected into every rendered page."""
    tenant_id = require_tenant_id(tenant_id)
    return _update_site_fields(tenant_id, site_id, changes, SITE_CODE_FIELDS)


def update_site_template(tenant_id: str | None, site_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Mark a site as a template and set its gallery metadata."""
    tenant_id = require_tenant_id(tenant_id)
    return _update_site_fields(tenant_id, site_id, changes, SITE_TEMPLATE_FIELDS)


def update_site_domain(tenant_id: str | None, site_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """
    Change subdomain and/or custom domain. Values are normalized and validated, then checked
    for conflicts against every other site before anything is written.
    """
    tenant_id = require_tenant_id(tenant_id)
    unknown = set(changes) - {"subdomain", "custom_domain"}
    if unknown:
        raise ValidationError(sorted(unknown)[0], "Field cannot be updated here")
    normalized: dict[str, Any] = {}
    if "subdomain" in changes:
        normalized["subdomain"] = normalize_subdomain(changes["subdomain"])
    if "custom_domain" in changes:
        normalized["custom_domain"] = normalize_custom_domain(changes["custom_domain"])
    try:
        with get_db() as session:
            site = _load_site(session, tenant_id, site_id)
            if "subdomain" in normalized:
                _ensure_subdomain_free(session, normalized["subdomain"], exclude_site_id=site.id)
            if normalized.get("custom_domain"):
                _ensure_custom_domain_free(session, normalized["custom_domain"], exclude_site_id=site.id)
            for key, value in normalized.items():
                setattr(site, key, value)
            site.updated_at = _utcnow()
            render_cache.invalidate_site(session, site.id)
            session.flush()
            return _site_dict(site)
    except IntegrityError as exc:
        raise _conflict_from_integrity(exc) from exc


# --- Pages ---


def list_pages(tenant_id: str | None, site_id: str) -> list[dict[str, Any]]:
    """Pages of a tenant's site: home first, then by creation. Content omitted."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        return [_page_dict(p, include_content=False) for p in _ordered_pages(session, site.id)]


def get_page(tenant_id: str | None, page_id: str) -> dict[str, Any]:
    """Page with draft and published content."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        return _page_dict(_load_page(session, tenant_id, page_id))


def create_page(
    tenant_id: str | None,
    site_id: str,
    name: str,
    slug: str,
    *,
    seo: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """New page with an empty draft. Slug must be unique within the site."""
    tenant_id = require_tenant_id(tenant_id)
    if not name or not name.strip():
        raise ValidationError("name", "Page name is required")
    slug = validate_slug(slug)
    seo = {k: v for k, v in (seo or {}).items() if k.startswith("seo_")}
    try:
        with get_db() as session:
            site = _load_site(session, tenant_id, site_id)
            _ensure_slug_free(session, site.id, slug)
            page = Page(
                site_id=site.id,
                name=name.strip(),
                slug=slug,
                draft_content=[],
                published_content=None,
                is_home_page=False,
                **seo,
            )
            session.add(page)
            session.flush()
            return _page_dict(page)
    except IntegrityError as exc:
        raise _conflict_from_integrity(exc) from exc


def update_page(tenant_id: str | None, page_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Update page metadata (name, slug, SEO). Never touches draft or published content."""
    tenant_id = require_tenant_id(tenant_id)
    unknown = set(changes) - PAGE_FIELDS
    if unknown:
        raise ValidationError(sorted(unknown)[0], "Field cannot be updated here")
    if "name" in changes and (not changes["name"] or not str(changes["name"]).strip()):
        raise ValidationError("name", "Page name is required")
    changes = dict(changes)
    if "slug" in changes:
        changes["slug"] = validate_slug(changes["slug"])
    try:
        with get_db() as session:
            page = _load_page(session, tenant_id, page_id)
            if "slug" in changes:
                if page.is_home_page and changes["slug"] != page.slug:
                    raise ValidationError("slug", "The home page slug cannot be changed")
                _ensure_slug_free(session, page.site_id, changes["slug"], exclude_page_id=page.id)
            for key, value in changes.items():
                setattr(page, key, value.strip() if key == "name" else value)
            page.updated_at = _utcnow()
            render_cache.invalidate_site(session, page.site_id)
            session.flush()
            return _page_dict(page)
    except IntegrityError as exc:
        raise _conflict_from_integrity(exc) from exc


def delete_page(tenant_id: str | None, page_id: str) -> dict[str, Any]:
    """Delete a page. The home page cannot be deleted."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        page = _load_page(session, tenant_id, page_id)
        if page.is_home_page:
            raise ForbiddenError("Cannot delete the home page")
        summary = _page_dict(page, include_content=False)
        render_cache.invalidate_site(session, page.site_id)
        session.delete(page)
        return summary


def save_page_draft(tenant_id: str | None, page_id: str, content: list[dict[str, Any]]) -> dict[str, Any]:
    """Overwrite draft_content and bump updated_at. published_content is untouched."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        page = _load_page(session, tenant_id, page_id)
        page.draft_content = copy.deepcopy(content)
        page.updated_at = _utcnow()
        session.flush()
        return _page_dict(page, include_content=False)


def get_page_content(tenant_id: str | None, page_id: str) -> tuple[list | None, list | None]:
    """(draft_content, published_content) for change detection."""
    tenant_id = require_tenant_id(tenant_id)
    stmt = select_page_for_tenant(tenant_id).where(Page.id == page_id)
    with get_db() as session:
        page = session.scalars(stmt).first()
        if page is None:
            raise NotFoundError("Page", page_id)
        return copy.deepcopy(page.draft_content), copy.deepcopy(page.published_content)


def _publish_page(page: Page, published_at: datetime) -> None:
    """Copy one page's draft to published. published_at is shared by every page of the publish."""
    page.published_content = copy.deepcopy(page.draft_content)
    page.last_published_at = published_at


def publish_site_pages(tenant_id: str | None, site_id: str) -> dict[str, Any]:
    """
    Copy draft -> published for every page of the site in one transaction.

    Pages with no draft are skipped. Any exception rolls back the whole publish, so no page
    is left half-published. Returns site summary plus published/skipped page ids.
    """
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        published_at = _utcnow()
        published: list[str] = []
        skipped: list[str] = []
        for page in _ordered_pages(session, site.id):
            if page.draft_content is None:
                skipped.append(page.id)
                continue
            _publish_page(page, published_at)
            published.append(page.id)
        session.flush()
        return {
            "site": _site_dict(site),
            "published_page_ids": published,
            "skipped_page_ids": skipped,
            "published_at": published_at,
        }


def unpublish_site_pages(tenant_id: str | None, site_id: str) -> int:
    """Clear published content on every page of the site (site goes back to Coming Soon)."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        result = session.execute(
            update(Page)
            .where(Page.site_id == site.id)
            .values(published_content=None, last_published_at=None, updated_at=_utcnow())
        )
        render_cache.invalidate_site(session, site.id)
        return result.rowcount or 0


def get_preview_target(tenant_id: str | None, site_id: str, page_id: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """(site, page) for draft preview. Page must belong to the tenant's site."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        page = _load_page(session, tenant_id, page_id)
        if page.site_id != site.id:
            raise NotFoundError("Page", page_id)
        return _site_dict(site), _page_dict(page)


# --- Audit trail (tenant reads) ---


def list_audit_logs(
    tenant_id: str | None,
    site_id: str,
    *,
    limit: int = 50,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Audit entries for a tenant's site, newest first."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        stmt = (
            select(AuditLog)
            .where(AuditLog.site_id == site.id)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [
            {
                "id": r.id,
                "action": r.action,
                "entity_type": r.entity_type,
                "entity_id": r.entity_id,
                "actor_id": r.actor_id,
                "site_id": r.site_id,
                "details": r.details,
                "ip_address": r.ip_address,
                "user_agent": r.user_agent,
                "created_at": r.created_at,
            }
            for r in session.scalars(stmt).all()
        ]


# --- Analytics (tenant reads) ---


def get_site_analytics(tenant_id: str | None, site_id: str, since: date, *, top: int = 10) -> dict[str, Any]:
    """Daily view totals and top paths for a tenant's site since the given day (inclusive)."""
    tenant_id = require_tenant_id(tenant_id)
    with get_db() as session:
        site = _load_site(session, tenant_id, site_id)
        daily_stmt = (
            select(SiteAnalytics.date, func.sum(SiteAnalytics.views))
            .where(SiteAnalytics.site_id == site.id, SiteAnalytics.date >= since)
            .group_by(SiteAnalytics.date)
            .order_by(SiteAnalytics.date)
        )
        paths_stmt = (
            select(SiteAnalytics.path, func.sum(SiteAnalytics.views).label("views"))
            .where(SiteAnalytics.site_id == site.id, SiteAnalytics.date >= since)
            .group_by(SiteAnalytics.path)
            .order_by(func.sum(SiteAnalytics.views).desc(), SiteAnalytics.path)
            .limit(top)
        )
        daily = [{"date": d, "views": int(v or 0)} for d, v in session.execute(daily_stmt).all()]
        paths = [{"path": p, "views": int(v or 0)} for p, v in session.execute(paths_stmt).all()]
        return {
            "site_id": site.id,
            "since": since,
            "total_views": sum(d["views"] for d in daily),
            "daily": daily,
            "top_paths": paths,
        }


# --- Templates (shared catalog; caller must be authenticated) ---


def list_templates(tenant_id: str | None, category: str | None = None) -> list[dict[str, Any]]:
    """Template sites from every tenant, optionally filtered by category. Banned sites excluded."""
    require_tenant_id(tenant_id)
    stmt = select(Site).where(Site.is_template.is_(True), Site.is_banned.is_(False))
    if category:
        stmt = stmt.where(Site.template_category == category)
    stmt = stmt.order_by(Site.created_at.desc(), Site.id)
    with get_db() as session:
        return [
            {
                "id": s.id,
                "name": s.name,
                "description": s.template_description or s.description,
                "category": s.template_category,
                "thumbnail_url": s.thumbnail_url,
            }
            for s in session.scalars(stmt).all()
        ]


def list_template_categories(tenant_id: str | None) -> list[str]:
    require_tenant_id(tenant_id)
    stmt = (
        select(Site.template_category)
        .where(Site.is_template.is_(True), Site.is_banned.is_(False), Site.template_category.is_not(None))
        .distinct()
        .order_by(Site.template_category)
    )
    with get_db() as session:
        return [c for c in session.scalars(stmt).all() if c]


def clone_template(tenant_id: str | None, template_id: str, name: str, subdomain: str) -> dict[str, Any]:
    """
    Create a new site for tenant from a template, in one transaction.

    Styles, navigation, logo and nav color are copied. Each page's draft is the template
    page's published content (draft when never published); nothing is published yet.
    """
    tenant_id = require_tenant_id(tenant_id)
    if not name or not name.strip():
        raise ValidationError("name", "Site name is required")
    subdomain = normalize_subdomain(subdomain)
    try:
        with get_db() as session:
            template = session.scalars(
                select(Site).where(Site.id == template_id, Site.is_template.is_(True), Site.is_banned.is_(False))
            ).first()
            if template is None:
                raise NotFoundError("Template", template_id)
            _ensure_subdomain_free(session, subdomain)
            site = Site(
                tenant_id=tenant_id,
                name=name.strip(),
                description=template.template_description or template.description,
                subdomain=subdomain,
                styles=copy.deepcopy(template.styles) if template.styles is not None else {},
                navigation=copy.deepcopy(template.navigation) if template.navigation is not None else [],
                logo_url=template.logo_url,
                nav_color=template.nav_color,
            )
            session.add(site)
            session.flush()
            template_pages = _ordered_pages(session, template.id)
            for source in template_pages:
                content = source.published_content if source.published_content is not None else source.draft_content
                session.add(
                    Page(
                        site_id=site.id,
                        name=source.name,
                        slug=source.slug,
                        draft_content=copy.deepcopy(content) if content is not None else [],
                        published_content=None,
                        is_home_page=source.is_home_page,
                        seo_title=source.seo_title,
                        seo_description=source.seo_description,
                        seo_keywords=source.seo_keywords,
                        seo_image=source.seo_image,
                    )
                )
            if not template_pages:
                session.add(_new_home_page(site.id))
            session.flush()
            return _site_dict(site)
    except IntegrityError as exc:
        raise _conflict_from_integrity(exc) from exc


# --- Public reads (no tenant: hostname-addressed) ---


def find_site_by_lookup_key(key: str) -> dict[str, Any] | None:
    """Site whose subdomain or custom domain equals key (case-insensitive). Oldest wins."""
    key = (key or "").strip().lower()
    if not key:
        return None
    stmt = (
        select(Site)
        .where(or_(func.lower(Site.subdomain) == key, func.lower(Site.custom_domain) == key))
        .order_by(Site.created_at, Site.id)
        .limit(1)
    )
    with get_db() as session:
        site = session.scalars(stmt).first()
        return _site_dict(site) if site else None


def find_page_for_path(site_id: str, slug: str) -> dict[str, Any] | None:
    """
    Page serving a public path. Root ("") resolves by home priority: is_home_page flag,
    then slug "home", then slug "". Other slugs match exactly.
    """
    if slug == "":
        priority = case((Page.is_home_page.is_(True), 0), (Page.slug == "home", 1), else_=2)
        stmt = (
            select(Page)
            .where(Page.site_id == site_id)
            .where(or_(Page.is_home_page.is_(True), Page.slug.in_(HOME_SLUGS)))
            .order_by(priority, Page.created_at, Page.id)
            .limit(1)
        )
    else:
        stmt = select(Page).where(Page.site_id == site_id, Page.slug == slug).limit(1)
    with get_db() as session:
        page = session.scalars(stmt).first()
        return _page_dict(page) if page else None


def get_cached_render(site_id: str, path: str, content_hash: str | None = None) -> str | None:
    with get_db() as session:
        return render_cache.cache_get(session, site_id, path, content_hash)


def store_cached_render(site_id: str, path: str, html: str, content_hash: str | None, ttl_seconds: int) -> None:
    with get_db() as session:
        render_cache.cache_set(session, site_id, path, html, content_hash=content_hash, ttl_seconds=ttl_seconds)


def invalidate_render_cache(site_id: str) -> int:
    with get_db() as session:
        return render_cache.invalidate_site(session, site_id)


def _increment_views(session: Session, site_id: str, day: date, path: str) -> int:
    result = session.execute(
        update(SiteAnalytics)
        .where(SiteAnalytics.site_id == site_id, SiteAnalytics.date == day, SiteAnalytics.path == path)
        .values(views=SiteAnalytics.views + 1)
    )
    return result.rowcount or 0


def record_page_view(site_id: str, path: str, day: date | None = None) -> bool:
    """
    Upsert the (site, day, path) counter with views = views + 1.

    Returns False when the site does not exist. A concurrent first insert for the same key
    is resolved by retrying the increment.
    """
    day = day or _utcnow().date()
    with get_db() as session:
        if session.get(Site, site_id) is None:
            logger.info("record_page_view skipped site_id=%s reason=site_not_found", site_id)
            return False
        if _increment_views(session, site_id, day, path):
            return True
    try:
        with get_db() as session:
            session.add(SiteAnalytics(site_id=site_id, date=day, path=path, views=1))
        return True
    except IntegrityError:
        with get_db() as session:
            _increment_views(session, site_id, day, path)
        return True


# --- Platform jobs (no tenant: moderation and retention) ---


def set_site_ban(site_id: str, banned: bool, reason: str | None = None) -> dict[str, Any]:
    """Ban or unban any site. Banned sites stop resolving publicly; cached renders are dropped."""
    with get_db() as session:
        site = session.get(Site, site_id)
        if site is None:
            raise NotFoundError("Site", site_id)
        site.is_banned = banned
        site.ban_reason = reason if banned else None
        site.banned_at = _utcnow() if banned else None
        site.updated_at = _utcnow()
        render_cache.invalidate_site(session, site.id)
        session.flush()
        return _site_dict(site)


def insert_audit_logs(entries: Sequence[dict[str, Any]]) -> int:
    """Append audit entries. Each dict: action, entity_type, entity_id, actor_id, site_id?, details?, ip_address?, user_agent?."""
    if not entries:
        return 0
    with get_db() as session:
        session.add_all(
            [
                AuditLog(
                    action=e["action"],
                    entity_type=e["entity_type"],
                    entity_id=e["entity_id"],
                    actor_id=e["actor_id"],
                    site_id=e.get("site_id"),
                    details=e.get("details"),
                    ip_address=e.get("ip_address"),
                    user_agent=e.get("user_agent"),
                )
                for e in entries
            ]
        )
    return len(entries)


def purge_audit_logs(older_than_days: int) -> int:
    """Delete audit entries older than the retention window. Returns rows removed."""
    if older_than_days < 0:
        raise ValueError("older_than_days must be >= 0")
    cutoff = _utcnow() - timedelta(days=older_than_days)
    with get_db() as session:
        result = session.execute(delete(AuditLog).where(AuditLog.created_at < cutoff))
        return result.rowcount or 0
