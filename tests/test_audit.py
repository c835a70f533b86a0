"""Audit trail: entries per mutation, best-effort writes, retention purge and the cron job."""

import importlib
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select, update

from apps.api.db import get_db
from apps.api.main import app
from apps.api.models.audit_log import AuditLog
from apps.api.services import audit, repo
from tests.conftest import TENANT_A, TENANT_B, auth, create_site, hero, home_page, save_draft

client = TestClient(app)


def _actions(site_id: str, tenant_id: str = TENANT_A) -> list[str]:
    resp = client.get(f"/sites/{site_id}/audit-logs", headers=auth(tenant_id))
    assert resp.status_code == 200, resp.text
    return [e["action"] for e in resp.json()]


def _audit_count() -> int:
    with get_db() as session:
        return session.scalar(select(func.count()).select_from(AuditLog))


def test_create_and_publish_are_audited_newest_first() -> None:
    site = create_site(client)
    save_draft(client, home_page(client, site["id"])["id"], [hero("Hi")])
    client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))

    resp = client.get(f"/sites/{site['id']}/audit-logs", headers=auth(TENANT_A))
    entries = resp.json()
    assert entries[0]["action"] == "SITE_PUBLISH"
    assert entries[0]["entity_type"] == "Site"
    assert entries[0]["actor_id"] == TENANT_A
    assert entries[0]["details"]["pages_published"] == 1
    assert entries[-1]["action"] == "SITE_CREATE"
    assert entries[-1]["details"]["subdomain"] == "acme"


def test_audit_records_caller_metadata() -> None:
    resp = client.post(
        "/sites",
        json={"name": "Acme", "subdomain": "acme"},
        headers={**auth(TENANT_A), "X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "editor/1.0"},
    )
    entry = client.get(f"/sites/{resp.json()['id']}/audit-logs", headers=auth(TENANT_A)).json()[0]
    assert entry["ip_address"] == "203.0.113.7"
    assert entry["user_agent"] == "editor/1.0"


def test_audit_logs_are_tenant_scoped() -> None:
    site = create_site(client)
    assert client.get(f"/sites/{site['id']}/audit-logs", headers=auth(TENANT_B)).status_code == 404


def test_audit_failure_does_not_fail_the_request() -> None:
    with patch("apps.api.services.repo.insert_audit_logs", side_effect=RuntimeError("db down")):
        resp = client.post("/sites", json={"name": "Acme", "subdomain": "acme"}, headers=auth(TENANT_A))
    assert resp.status_code == 201
    assert _audit_count() == 0


def test_log_activity_rejects_unknown_action_without_raising() -> None:
    assert audit.log_activity("SITE_EXPLODE", "Site", "s1", TENANT_A) is False
    assert audit.log_activity("SITE_UPDATE", "Galaxy", "s1", TENANT_A) is False
    assert _audit_count() == 0


def test_purge_removes_only_expired_entries() -> None:
    site = create_site(client)
    client.patch(f"/sites/{site['id']}", json={"name": "Acme Inc"}, headers=auth(TENANT_A))
    old = datetime.now(timezone.utc) - timedelta(days=120)
    with get_db() as session:
        session.execute(update(AuditLog).where(AuditLog.action == "SITE_CREATE").values(created_at=old))

    assert audit.purge_expired(90) == 1
    assert _actions(site["id"]) == ["SITE_UPDATE"]


def test_purge_rejects_negative_retention() -> None:
    with pytest.raises(ValueError):
        repo.purge_audit_logs(-1)


def test_cron_audit_purge(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("LOG_DIR", str(tmp_path))
    audit_purge = importlib.import_module("cron.audit_purge")

    create_site(client)
    old = datetime.now(timezone.utc) - timedelta(days=400)
    with get_db() as session:
        session.execute(update(AuditLog).values(created_at=old))

    assert audit_purge.main(["--days", "0"]) == 2
    assert _audit_count() == 1

    assert audit_purge.main(["--days", "365"]) == 0
    assert _audit_count() == 0


def test_cron_audit_purge_reports_failure(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("LOG_DIR", str(tmp_path))
    audit_purge = importlib.import_module("cron.audit_purge")
    with patch.object(audit_purge.audit, "purge_expired", side_effect=RuntimeError("locked")):
        assert audit_purge.main(["--no-cache"]) == 1


def test_log_activities_batch_is_all_or_nothing() -> None:
    site = create_site(client)
    before = _audit_count()
    entries = [
        {"action": "PAGE_CREATE", "entity_type": "Page", "entity_id": "p1", "actor_id": TENANT_A, "site_id": site["id"]},
        {"action": "PAGE_DELETE", "entity_type": "Page", "entity_id": "p1", "actor_id": TENANT_A, "site_id": site["id"]},
    ]
    assert audit.log_activities(entries) == 2
    assert _actions(site["id"])[:2] == ["PAGE_DELETE", "PAGE_CREATE"]

    broken = entries + [{"action": "NOPE", "entity_type": "Page", "entity_id": "p2", "actor_id": TENANT_A}]
    assert audit.log_activities(broken) == 0
    assert audit.log_activities([]) == 0
    assert _audit_count() == before + 2
