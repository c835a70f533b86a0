"""Draft/publish lifecycle: structural draft validation, atomic site publish, change detection."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from apps.api.services import repo
from apps.api.services.errors import NotFoundError, ValidationError
from apps.api.services.tenant_guard import TenantRequiredError
from apps.api.utils.hashing import has_content_changed

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    success: bool
    message: str
    site_url: str | None = None
    pages_published: int = 0
    pages_skipped: int = 0
    published_page_ids: list[str] = field(default_factory=list)
    published_at: datetime | None = None
    error: str | None = None


def validate_content_shape(content: Any) -> list[dict[str, Any]]:
    """
    Structural check of a block array before it is stored as draft.

    Only shape is enforced here (array of objects with a non-empty string type); block data
    against its schema is checked by the editor and repaired at render time.
    """
    if not isinstance(content, list):
        raise ValidationError("content", "Content must be an array of blocks")
    for index, block in enumerate(content):
        if not isinstance(block, dict):
            raise ValidationError(f"content.{index}", "Block must be an object")
        block_type = block.get("type")
        if not isinstance(block_type, str) or not block_type.strip():
            raise ValidationError(f"content.{index}.type", "Block type must be a non-empty string")
        if "id" in block and not isinstance(block["id"], str):
            raise ValidationError(f"content.{index}.id", "Block id must be a string")
        if "data" in block and not isinstance(block["data"], dict):
            raise ValidationError(f"content.{index}.data", "Block data must be an object")
        if "visible" in block and not isinstance(block["visible"], bool):
            raise ValidationError(f"content.{index}.visible", "Block visible must be a boolean")
    return content


def save_draft(tenant_id: str | None, page_id: str, content: Any) -> dict[str, Any]:
    """Validate shape and overwrite the page draft. Saving the same content twice is a no-op in effect."""
    content = validate_content_shape(content)
    page = repo.save_page_draft(tenant_id, page_id, content)
    logger.info("save_draft page_id=%s blocks=%d", page_id, len(content))
    return page


def has_unpublished_changes(tenant_id: str | None, page_id: str) -> bool:
    """True when the draft hash differs from the published hash. No draft means nothing to publish."""
    draft, published = repo.get_page_content(tenant_id, page_id)
    return has_content_changed(draft, published)


def publish_site(tenant_id: str | None, site_id: str) -> PublishResult:
    """
    Publish every page of a site atomically.

    A missing site or tenant raises (NotFoundError, TenantRequiredError). Any other failure
    rolls the whole publish back and is logged and returned as success=False.

    The render cache is invalidated after the commit; a failed invalidation does not undo
    the publish.
    """
    try:
        outcome = repo.publish_site_pages(tenant_id, site_id)
    except (NotFoundError, TenantRequiredError):
        raise
    except Exception as e:
        logger.exception("publish_site failed site_id=%s", site_id)
        return PublishResult(success=False, message="Failed to publish site", error=str(e))

    try:
        repo.invalidate_render_cache(site_id)
    except Exception:
        logger.exception("render cache invalidation failed after publish site_id=%s", site_id)

    site = outcome["site"]
    published = outcome["published_page_ids"]
    skipped = outcome["skipped_page_ids"]
    logger.info(
        "publish_site site_id=%s pages_published=%d pages_skipped=%d",
        site_id,
        len(published),
        len(skipped),
    )
    return PublishResult(
        success=True,
        message=f"Published {len(published)} page(s)",
        site_url=site["url"],
        pages_published=len(published),
        pages_skipped=len(skipped),
        published_page_ids=published,
        published_at=outcome["published_at"],
    )


def unpublish_site(tenant_id: str | None, site_id: str) -> int:
    """Take a site offline: every page goes back to never-published."""
    cleared = repo.unpublish_site_pages(tenant_id, site_id)
    logger.info("unpublish_site site_id=%s pages=%d", site_id, cleared)
    return cleared
