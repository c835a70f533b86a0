"""Page-view counters. Recording is fire-and-forget; reads are tenant-scoped."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from apps.api.services import repo
from apps.api.services.url_utils import path_to_slug

logger = logging.getLogger(__name__)

MAX_PATH_LENGTH = 512


def normalize_view_path(path: str | None) -> str:
    """'/about/' -> '/about', '' -> '/'. Query strings and fragments are dropped."""
    raw = (path or "").split("?", 1)[0].split("#", 1)[0]
    return ("/" + path_to_slug(raw))[:MAX_PATH_LENGTH]


def track_view(site_id: str | None, path: str | None) -> bool:
    """Increment today's counter for (site, path). Never raises."""
    if not site_id:
        return False
    try:
        return repo.record_page_view(site_id, normalize_view_path(path))
    except Exception:
        logger.exception("Failed to track view site_id=%s path=%s", site_id, path)
        return False


def site_summary(tenant_id: str | None, site_id: str, days: int = 30) -> dict[str, Any]:
    """Daily totals and top paths for the last `days` days (today included)."""
    days = max(1, min(days, 365))
    since: date = datetime.now(timezone.utc).date() - timedelta(days=days - 1)
    summary = repo.get_site_analytics(tenant_id, site_id, since)
    summary["days"] = days
    return summary
