"""Best-effort audit trail. Writing an entry never fails the operation being audited."""

import logging
from typing import Any

from fastapi import BackgroundTasks, Request

from apps.api.models.audit_log import AUDIT_ACTIONS, AUDIT_ENTITY_TYPES
from apps.api.services import repo

logger = logging.getLogger(__name__)


def request_meta(request: Request | None) -> dict[str, str | None]:
    """ip_address / user_agent of the caller, honoring X-Forwarded-For from the edge proxy."""
    if request is None:
        return {"ip_address": None, "user_agent": None}
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.headers.get("x-real-ip") or (request.client.host if request.client else None)
    return {"ip_address": ip, "user_agent": request.headers.get("user-agent")}


def build_entry(
    action: str,
    entity_type: str,
    entity_id: str,
    actor_id: str,
    *,
    site_id: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> dict[str, Any]:
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"unknown audit action: {action}")
    if entity_type not in AUDIT_ENTITY_TYPES:
        raise ValueError(f"unknown audit entity type: {entity_type}")
    return {
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "actor_id": actor_id,
        "site_id": site_id,
        "details": details,
        "ip_address": ip_address,
        "user_agent": user_agent,
    }


def log_activity(
    action: str,
    entity_type: str,
    entity_id: str,
    actor_id: str,
    *,
    site_id: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> bool:
    """Record one audit entry. Returns False (and logs) on any failure; never raises."""
    try:
        entry = build_entry(
            action,
            entity_type,
            entity_id,
            actor_id,
            site_id=site_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        repo.insert_audit_logs([entry])
        return True
    except Exception:
        logger.exception("Failed to log activity action=%s entity=%s:%s", action, entity_type, entity_id)
        return False


def log_activities(entries: list[dict[str, Any]]) -> int:
    """Record a batch of entries (build_entry keyword dicts). Returns rows written, 0 on failure."""
    if not entries:
        return 0
    try:
        rows = [
            build_entry(
                e["action"],
                e["entity_type"],
                e["entity_id"],
                e["actor_id"],
                site_id=e.get("site_id"),
                details=e.get("details"),
                ip_address=e.get("ip_address"),
                user_agent=e.get("user_agent"),
            )
            for e in entries
        ]
        return repo.insert_audit_logs(rows)
    except Exception:
        logger.exception("Failed to log activities count=%d", len(entries))
        return 0


def purge_expired(older_than_days: int) -> int:
    """Retention purge (cron). Errors propagate so the job exits non-zero."""
    removed = repo.purge_audit_logs(older_than_days)
    logger.info("audit purge older_than_days=%d removed=%d", older_than_days, removed)
    return removed


def audit_in_background(
    background_tasks: BackgroundTasks,
    request: Request | None,
    actor_id: str,
    action: str,
    entity_type: str,
    entity_id: str,
    *,
    site_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Schedule log_activity to run after the response is sent."""
    background_tasks.add_task(
        log_activity,
        action,
        entity_type,
        entity_id,
        actor_id,
        site_id=site_id,
        details=details,
        **request_meta(request),
    )
