"""Public rendering by hostname: coming soon, published content, render cache, bans and preview."""

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy import select, update

from apps.api.db import get_db
from apps.api.main import app
from apps.api.models.page import Page
from apps.api.models.site_analytics import SiteAnalytics
from apps.api.services import publish, renderer
from tests.conftest import TENANT_A, TENANT_B, auth, create_site, hero, home_page, save_draft

client = TestClient(app)

HOST = "acme.sitebuilder.local"


def _publish(site_id: str, tenant_id: str = TENANT_A) -> None:
    resp = client.post(f"/sites/{site_id}/publish", headers=auth(tenant_id))
    assert resp.json()["success"] is True, resp.text


def _published_site(title: str = "Hi") -> tuple[dict, dict]:
    site = create_site(client)
    home = home_page(client, site["id"])
    save_draft(client, home["id"], [hero(title)])
    _publish(site["id"])
    return site, home


def test_new_site_shows_coming_soon() -> None:
    create_site(client)
    resp = client.get(f"/site/{HOST}")
    assert resp.status_code == 200
    assert "Coming Soon" in resp.text
    assert "<h1>Hi</h1>" not in resp.text


def test_published_home_page_renders_blocks() -> None:
    _published_site("Hi")
    resp = client.get(f"/site/{HOST}")
    assert resp.status_code == 200
    assert "<h1>Hi</h1>" in resp.text
    assert resp.headers["content-type"].startswith("text/html")


def test_draft_edits_do_not_leak_to_public() -> None:
    site, home = _published_site("Hi")
    save_draft(client, home["id"], [hero("Secret draft")])
    resp = client.get(f"/site/{HOST}")
    assert "<h1>Hi</h1>" in resp.text
    assert "Secret draft" not in resp.text


def test_bare_subdomain_and_custom_domain_resolve() -> None:
    site, _ = _published_site("Hi")
    client.patch(f"/sites/{site['id']}/domain", json={"custom_domain": "custom.com"}, headers=auth(TENANT_A))

    for host in ("acme", "ACME.sitebuilder.local", "custom.com", "www.custom.com"):
        resp = client.get(f"/site/{host}")
        assert resp.status_code == 200, host
        assert "<h1>Hi</h1>" in resp.text


def test_unknown_host_and_unknown_path_are_404() -> None:
    _published_site("Hi")
    missing_site = client.get("/site/nobody.sitebuilder.local")
    assert missing_site.status_code == 404
    assert "404" in missing_site.text

    missing_page = client.get(f"/site/{HOST}/does-not-exist")
    assert missing_page.status_code == 404


def test_subpage_resolves_by_exact_slug() -> None:
    site = create_site(client)
    about = client.post(
        f"/sites/{site['id']}/pages", json={"name": "About", "slug": "about"}, headers=auth(TENANT_A)
    ).json()
    save_draft(client, about["id"], [hero("About us")])
    _publish(site["id"])

    for path in ("about", "about/"):
        resp = client.get(f"/site/{HOST}/{path}")
        assert resp.status_code == 200
        assert "<h1>About us</h1>" in resp.text
    assert client.get(f"/site/{HOST}/about/team").status_code == 404


def test_root_prefers_page_flagged_as_home() -> None:
    site = create_site(client)
    home = home_page(client, site["id"])
    legacy = client.post(
        f"/sites/{site['id']}/pages", json={"name": "Home", "slug": "home"}, headers=auth(TENANT_A)
    ).json()
    save_draft(client, home["id"], [hero("Flagged")])
    save_draft(client, legacy["id"], [hero("Legacy home")])
    _publish(site["id"])

    assert "<h1>Flagged</h1>" in client.get(f"/site/{HOST}").text

    with get_db() as session:
        session.execute(update(Page).where(Page.id == home["id"]).values(is_home_page=False))
    client.patch(f"/sites/{site['id']}/styles", json={"styles": {}}, headers=auth(TENANT_A))

    assert "<h1>Legacy home</h1>" in client.get(f"/site/{HOST}").text


def test_render_cache_hit_and_invalidation_on_publish() -> None:
    site, home = _published_site("Hi")

    first = client.get(f"/site/{HOST}")
    assert first.headers["X-Render-Cache"] == "miss"
    second = client.get(f"/site/{HOST}")
    assert second.headers["X-Render-Cache"] == "hit"
    assert second.text == first.text

    save_draft(client, home["id"], [hero("Updated")])
    assert client.get(f"/site/{HOST}").headers["X-Render-Cache"] == "hit"

    _publish(site["id"])
    after = client.get(f"/site/{HOST}")
    assert after.headers["X-Render-Cache"] == "miss"
    assert "<h1>Updated</h1>" in after.text


def test_styles_change_invalidates_cache() -> None:
    site, _ = _published_site("Hi")
    client.get(f"/site/{HOST}")
    assert client.get(f"/site/{HOST}").headers["X-Render-Cache"] == "hit"

    client.patch(f"/sites/{site['id']}/styles", json={"styles": {"primary": "#1e40af"}}, headers=auth(TENANT_A))
    resp = client.get(f"/site/{HOST}")
    assert resp.headers["X-Render-Cache"] == "miss"
    assert "--primary: #1e40af" in resp.text


def test_cache_disabled_with_zero_ttl(monkeypatch) -> None:
    monkeypatch.setenv("RENDER_CACHE_TTL_SECONDS", "0")
    _published_site("Hi")
    client.get(f"/site/{HOST}")
    assert client.get(f"/site/{HOST}").headers["X-Render-Cache"] == "miss"


def test_banned_site_is_suspended(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_TENANTS", "moderator")
    site, _ = _published_site("Hi")
    client.get(f"/site/{HOST}")

    denied = client.post(f"/admin/sites/{site['id']}/ban", json={"reason": "spam"}, headers=auth(TENANT_A))
    assert denied.status_code == 403

    resp = client.post(f"/admin/sites/{site['id']}/ban", json={"reason": "spam"}, headers=auth("moderator"))
    assert resp.status_code == 200
    assert resp.json()["is_banned"] is True
    assert resp.json()["ban_reason"] == "spam"

    public = client.get(f"/site/{HOST}")
    assert public.status_code == 403
    assert "Site suspended" in public.text
    assert "<h1>Hi</h1>" not in public.text

    client.post(f"/admin/sites/{site['id']}/unban", headers=auth("moderator"))
    assert client.get(f"/site/{HOST}").status_code == 200


def test_preview_renders_draft_for_owner_only() -> None:
    site, home = _published_site("Hi")
    save_draft(client, home["id"], [hero("Work in progress")])

    resp = client.get(f"/preview/{site['id']}/{home['id']}", headers=auth(TENANT_A))
    assert resp.status_code == 200
    assert "<h1>Work in progress</h1>" in resp.text
    assert "Preview: draft content" in resp.text
    assert 'name="robots" content="noindex"' in resp.text
    assert resp.headers["Cache-Control"] == "no-store"

    assert client.get(f"/preview/{site['id']}/{home['id']}", headers=auth(TENANT_B)).status_code == 404
    assert client.get(f"/preview/{site['id']}/{home['id']}").status_code == 401


def test_public_render_records_a_view() -> None:
    site, _ = _published_site("Hi")
    client.get(f"/site/{HOST}/")
    client.get(f"/site/{HOST}")

    with get_db() as session:
        rows = session.scalars(select(SiteAnalytics).where(SiteAnalytics.site_id == site["id"])).all()
        assert [(r.path, r.views) for r in rows] == [("/", 2)]


def test_coming_soon_is_not_tracked() -> None:
    site = create_site(client)
    client.get(f"/site/{HOST}")
    with get_db() as session:
        assert session.scalars(select(SiteAnalytics).where(SiteAnalytics.site_id == site["id"])).all() == []


def test_preview_without_draft_shows_coming_soon() -> None:
    site = create_site(client)
    home = home_page(client, site["id"])
    with get_db() as session:
        session.execute(update(Page).where(Page.id == home["id"]).values(draft_content=None))

    resp = client.get(f"/preview/{site['id']}/{home['id']}", headers=auth(TENANT_A))
    assert resp.status_code == 200
    assert "Coming Soon" in resp.text
    assert resp.headers["Cache-Control"] == "no-store"


def test_render_racing_a_publish_is_not_served_from_cache() -> None:
    """HTML rendered from the old content and stored after a concurrent publish must not be served."""
    site, home = _published_site("Old")
    save_draft(client, home["id"], [hero("New")])
    real_render = renderer.render_page_html

    def publish_mid_render(*args, **kwargs):
        html = real_render(*args, **kwargs)
        assert publish.publish_site(TENANT_A, site["id"]).success is True
        return html

    with patch("apps.api.services.renderer.render_page_html", side_effect=publish_mid_render):
        stale = client.get(f"/site/{HOST}")
    assert "<h1>Old</h1>" in stale.text

    fresh = client.get(f"/site/{HOST}")
    assert fresh.headers["X-Render-Cache"] == "miss"
    assert "<h1>New</h1>" in fresh.text

    again = client.get(f"/site/{HOST}")
    assert again.headers["X-Render-Cache"] == "hit"
    assert "<h1>New</h1>" in again.text
