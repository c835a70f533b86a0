"""Draft/publish lifecycle: atomic multi-page publish, skipped pages and change detection."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update

from apps.api.db import get_db
from apps.api.main import app
from apps.api.models.page import Page
from apps.api.services import publish, repo
from apps.api.services.errors import NotFoundError
from apps.api.services.tenant_guard import TenantRequiredError
from tests.conftest import TENANT_A, TENANT_B, auth, create_site, hero, home_page, save_draft

client = TestClient(app)


def _two_page_site() -> tuple[dict, dict, dict]:
    site = create_site(client)
    home = home_page(client, site["id"])
    about = client.post(
        f"/sites/{site['id']}/pages", json={"name": "About", "slug": "about"}, headers=auth(TENANT_A)
    ).json()
    save_draft(client, home["id"], [hero("Hi")])
    save_draft(client, about["id"], [hero("About us", block_id="b2")])
    return site, home, about


def _page(page_id: str) -> dict:
    return client.get(f"/pages/{page_id}", headers=auth(TENANT_A)).json()


def _utc(value: datetime | str) -> datetime:
    """SQLite returns naive UTC datetimes; Postgres returns aware ones."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


def test_publish_copies_every_draft() -> None:
    site, home, about = _two_page_site()

    resp = client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Published 2 page(s)"
    assert body["pages_published"] == 2
    assert body["pages_skipped"] == 0
    assert body["site_url"] == "https://acme.sitebuilder.local"

    home_after, about_after = _page(home["id"]), _page(about["id"])
    assert home_after["published_content"] == [hero("Hi")]
    assert about_after["published_content"] == [hero("About us", block_id="b2")]
    assert home_after["last_published_at"] is not None
    assert home_after["last_published_at"] == about_after["last_published_at"]
    assert home_after["has_unpublished_changes"] is False


def test_publish_is_idempotent_without_edits() -> None:
    site, home, _ = _two_page_site()
    client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))
    first = _page(home["id"])
    resp = client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))
    assert resp.json()["success"] is True
    assert _page(home["id"])["published_content"] == first["published_content"]


def test_draft_edit_after_publish_is_an_unpublished_change() -> None:
    site, home, _ = _two_page_site()
    client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))

    save_draft(client, home["id"], [hero("Hello again")])
    assert publish.has_unpublished_changes(TENANT_A, home["id"]) is True
    assert _page(home["id"])["published_content"] == [hero("Hi")]


def test_key_order_is_not_a_change() -> None:
    site, home, _ = _two_page_site()
    client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))

    reordered = [{"data": {"title": "Hi"}, "type": "hero", "id": "b1"}]
    save_draft(client, home["id"], reordered)
    assert publish.has_unpublished_changes(TENANT_A, home["id"]) is False


def test_publish_failure_leaves_every_page_unpublished() -> None:
    """If copying the second page fails, the first page's copy is rolled back too."""
    site, home, about = _two_page_site()
    real_publish_page = repo._publish_page
    calls = {"n": 0}

    def fail_on_second(page, published_at):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("disk full")
        real_publish_page(page, published_at)

    with patch("apps.api.services.repo._publish_page", side_effect=fail_on_second):
        resp = client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Failed to publish site"
    assert "disk full" in body["error"]
    assert calls["n"] == 2

    for page_id in (home["id"], about["id"]):
        page = _page(page_id)
        assert page["published_content"] is None
        assert page["last_published_at"] is None


def test_publish_failure_is_not_audited() -> None:
    site, _, _ = _two_page_site()
    with patch("apps.api.services.repo._publish_page", side_effect=RuntimeError("boom")):
        client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))
    actions = [e["action"] for e in client.get(f"/sites/{site['id']}/audit-logs", headers=auth(TENANT_A)).json()]
    assert "SITE_PUBLISH" not in actions


def test_pages_without_draft_are_skipped() -> None:
    site, home, about = _two_page_site()
    with get_db() as session:
        session.execute(update(Page).where(Page.id == about["id"]).values(draft_content=None))

    result = publish.publish_site(TENANT_A, site["id"])
    assert result.success is True
    assert result.pages_published == 1
    assert result.pages_skipped == 1
    assert result.published_page_ids == [home["id"]]
    assert _page(about["id"])["published_content"] is None


def test_publish_unknown_or_foreign_site() -> None:
    site, _, _ = _two_page_site()
    assert client.post("/sites/does-not-exist/publish", headers=auth(TENANT_A)).status_code == 404
    assert client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_B)).status_code == 404

    with pytest.raises(NotFoundError):
        publish.publish_site(TENANT_B, site["id"])
    with pytest.raises(TenantRequiredError):
        publish.publish_site("  ", site["id"])
    assert _page(home_page(client, site["id"])["id"])["published_content"] is None


def test_unpublish_clears_published_content() -> None:
    site, home, about = _two_page_site()
    client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))

    resp = client.post(f"/sites/{site['id']}/unpublish", headers=auth(TENANT_A))
    assert resp.json() == {"success": True, "pages_unpublished": 2}
    assert _page(home["id"])["published_content"] is None
    assert _page(home["id"])["draft_content"] == [hero("Hi")]
    assert _page(about["id"])["is_published"] is False


def test_publish_audit_records_the_shared_publish_timestamp() -> None:
    site, home, about = _two_page_site()
    client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))

    entry = client.get(f"/sites/{site['id']}/audit-logs", headers=auth(TENANT_A)).json()[0]
    assert entry["action"] == "SITE_PUBLISH"
    audited = _utc(entry["details"]["published_at"])
    for page_id in (home["id"], about["id"]):
        assert _utc(_page(page_id)["last_published_at"]) == audited


def test_publish_result_carries_published_at() -> None:
    site, home, _ = _two_page_site()
    result = publish.publish_site(TENANT_A, site["id"])
    assert result.published_at is not None
    assert _utc(repo.get_page(TENANT_A, home["id"])["last_published_at"]) == _utc(result.published_at)
