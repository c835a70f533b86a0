"""Rendered public page cache. Uses the render_cache table; keys are site_id:path."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from apps.api.models.render_cache import RenderCache

logger = logging.getLogger(__name__)


def make_cache_key(site_id: str, path: str) -> str:
    """Exactly site_id:path, path normalized to a leading slash without trailing slash."""
    if not site_id or not str(site_id).strip():
        raise ValueError("site_id is required for render cache keys")
    clean = "/" + (path or "").strip().strip("/")
    return f"{str(site_id).strip()}:{clean}"


def cache_get(db: Session, site_id: str, path: str, content_hash: str | None = None) -> str | None:
    """Cached HTML, or None if missing or expired. When content_hash is given, the row must match it."""
    now = datetime.now(timezone.utc)
    stmt = (
        select(RenderCache.html)
        .where(RenderCache.cache_key == make_cache_key(site_id, path))
        .where(or_(RenderCache.expires_at.is_(None), RenderCache.expires_at > now))
    )
    if content_hash is not None:
        stmt = stmt.where(RenderCache.content_hash == content_hash)
    return db.scalars(stmt).first()


def cache_set(
    db: Session,
    site_id: str,
    path: str,
    html: str,
    content_hash: str | None = None,
    ttl_seconds: int | None = None,
) -> None:
    """Insert or replace the cached HTML for one route."""
    key = make_cache_key(site_id, path)
    expires_at = None
    if ttl_seconds is not None and ttl_seconds > 0:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)

    row = db.get(RenderCache, key)
    if row:
        row.html = html
        row.content_hash = content_hash
        row.expires_at = expires_at
        row.created_at = datetime.now(timezone.utc)
    else:
        db.add(
            RenderCache(
                cache_key=key,
                site_id=site_id,
                path=key.split(":", 1)[1],
                html=html,
                content_hash=content_hash,
                expires_at=expires_at,
            )
        )


def invalidate_site(db: Session, site_id: str) -> int:
    """Delete every cached route of a site. Returns number of rows removed."""
    result = db.execute(delete(RenderCache).where(RenderCache.site_id == site_id))
    removed = result.rowcount or 0
    logger.info("render_cache invalidate site_id=%s removed=%d", site_id, removed)
    return removed


def purge_expired(db: Session) -> int:
    now = datetime.now(timezone.utc)
    result = db.execute(
        delete(RenderCache).where(RenderCache.expires_at.is_not(None)).where(RenderCache.expires_at <= now)
    )
    return result.rowcount or 0
