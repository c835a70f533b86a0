"""Hostname + path -> site, page and content; public page serving with the render cache."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from apps.api.config import config
from apps.api.services import renderer, repo
from apps.api.services.registry import BlockRegistry
from apps.api.services.url_utils import path_to_slug, site_lookup_key
from apps.api.utils.hashing import generate_content_hash

logger = logging.getLogger(__name__)


class ResolutionStatus(str, Enum):
    FOUND = "found"
    SITE_NOT_FOUND = "site_not_found"
    BANNED = "banned"
    PAGE_NOT_FOUND = "page_not_found"
    COMING_SOON = "coming_soon"


class ContentMode(str, Enum):
    PUBLISHED = "published"
    DRAFT = "draft"


@dataclass
class Resolution:
    status: ResolutionStatus
    site: dict[str, Any] | None = None
    page: dict[str, Any] | None = None
    content: list[Any] | None = None


def select_content(page: dict[str, Any], mode: ContentMode) -> list[Any] | None:
    return page.get("draft_content") if mode == ContentMode.DRAFT else page.get("published_content")


def resolve_page(site: dict[str, Any], path: str | None, mode: ContentMode = ContentMode.PUBLISHED) -> Resolution:
    """Pick the page for path on an already-resolved site. Exact slug match only."""
    if site.get("is_banned"):
        return Resolution(ResolutionStatus.BANNED, site=site)
    page = repo.find_page_for_path(site["id"], path_to_slug(path))
    if page is None:
        return Resolution(ResolutionStatus.PAGE_NOT_FOUND, site=site)
    content = select_content(page, mode)
    if content is None:
        return Resolution(ResolutionStatus.COMING_SOON, site=site, page=page)
    return Resolution(ResolutionStatus.FOUND, site=site, page=page, content=content)


def resolve(hostname: str, path: str | None, mode: ContentMode = ContentMode.PUBLISHED) -> Resolution:
    """Resolve a public hostname and path. Never raises for missing sites or pages."""
    key = site_lookup_key(hostname)
    if key is None:
        return Resolution(ResolutionStatus.SITE_NOT_FOUND)
    site = repo.find_site_by_lookup_key(key)
    if site is None:
        return Resolution(ResolutionStatus.SITE_NOT_FOUND)
    return resolve_page(site, path, mode)


@dataclass
class PublicPage:
    status_code: int
    html: str
    resolution: ResolutionStatus
    site_id: str | None = None
    path: str = "/"
    from_cache: bool = False


def render_fingerprint(site: dict[str, Any], page: dict[str, Any], content: list[Any]) -> str:
    """Hash of the published state a cached render was built from."""
    return generate_content_hash(
        {
            "content": content,
            "last_published_at": str(page.get("last_published_at")),
            "site_updated_at": str(site.get("updated_at")),
        }
    )


def _cache_lookup(site_id: str, path: str, fingerprint: str) -> str | None:
    if config.RENDER_CACHE_TTL_SECONDS <= 0:
        return None
    try:
        return repo.get_cached_render(site_id, path, fingerprint)
    except Exception:
        logger.exception("render cache read failed site_id=%s path=%s", site_id, path)
        return None


def _cache_store(site_id: str, path: str, html: str, fingerprint: str) -> None:
    ttl = config.RENDER_CACHE_TTL_SECONDS
    if ttl <= 0:
        return
    try:
        repo.store_cached_render(site_id, path, html, fingerprint, ttl)
    except Exception:
        logger.exception("render cache write failed site_id=%s path=%s", site_id, path)


def serve_public_page(hostname: str, path: str | None, registry: BlockRegistry) -> PublicPage:
    """
    Render the published page for hostname/path, using the render cache when enabled.

    Banned -> 403 suspension page; unknown site or page -> 404 page; unpublished -> 200 Coming Soon.
    A cached render is only served while its fingerprint matches the current published state,
    so a render stored after a concurrent publish is never served.
    """
    norm_path = "/" + path_to_slug(path)
    key = site_lookup_key(hostname)
    site = repo.find_site_by_lookup_key(key) if key else None
    if site is None:
        logger.info("public render site_not_found host=%s", hostname)
        return PublicPage(404, renderer.render_not_found(), ResolutionStatus.SITE_NOT_FOUND, path=norm_path)
    if site.get("is_banned"):
        return PublicPage(403, renderer.render_suspended(), ResolutionStatus.BANNED, site_id=site["id"], path=norm_path)

    resolution = resolve_page(site, norm_path, ContentMode.PUBLISHED)
    if resolution.status == ResolutionStatus.PAGE_NOT_FOUND:
        return PublicPage(
            404, renderer.render_not_found(site), resolution.status, site_id=site["id"], path=norm_path
        )
    if resolution.status == ResolutionStatus.COMING_SOON:
        return PublicPage(200, renderer.render_coming_soon(site), resolution.status, site_id=site["id"], path=norm_path)

    fingerprint = render_fingerprint(site, resolution.page, resolution.content)
    cached = _cache_lookup(site["id"], norm_path, fingerprint)
    if cached is not None:
        return PublicPage(200, cached, resolution.status, site_id=site["id"], path=norm_path, from_cache=True)

    html = renderer.render_page_html(site, resolution.page, resolution.content, registry)
    _cache_store(site["id"], norm_path, html, fingerprint)
    return PublicPage(200, html, resolution.status, site_id=site["id"], path=norm_path)
