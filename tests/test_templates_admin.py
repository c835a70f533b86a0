"""Template gallery (flag, browse, clone) and site moderation."""

from fastapi.testclient import TestClient

from apps.api.main import app
from tests.conftest import TENANT_A, TENANT_B, auth, create_site, hero, home_page, save_draft

client = TestClient(app)


def _make_template(category: str = "portfolio", *, subdomain: str = "folio", publish: bool = True) -> dict:
    site = create_site(client, name="Folio", subdomain=subdomain)
    client.patch(f"/sites/{site['id']}/styles", json={"styles": {"primary": "#111827"}}, headers=auth(TENANT_A))
    home = home_page(client, site["id"])
    save_draft(client, home["id"], [hero("Published look")])
    if publish:
        client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))
        save_draft(client, home["id"], [hero("Unfinished redesign")])
    resp = client.patch(
        f"/sites/{site['id']}/template",
        json={"is_template": True, "template_category": category, "template_description": "Clean portfolio"},
        headers=auth(TENANT_A),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["is_template"] is True
    return site


def test_templates_are_visible_to_every_tenant() -> None:
    template = _make_template("portfolio")
    _make_template("shop", subdomain="store")

    listed = client.get("/templates", headers=auth(TENANT_B)).json()
    assert {t["category"] for t in listed} == {"portfolio", "shop"}
    only_portfolio = client.get("/templates", params={"category": "portfolio"}, headers=auth(TENANT_B)).json()
    assert [t["id"] for t in only_portfolio] == [template["id"]]
    assert only_portfolio[0]["description"] == "Clean portfolio"

    assert client.get("/templates/categories", headers=auth(TENANT_B)).json() == ["portfolio", "shop"]
    assert client.get("/templates").status_code == 401


def test_clone_copies_published_content_as_draft() -> None:
    template = _make_template()

    resp = client.post(
        f"/templates/{template['id']}/clone", json={"name": "My Folio", "subdomain": "myfolio"}, headers=auth(TENANT_B)
    )
    assert resp.status_code == 201, resp.text
    clone = resp.json()
    assert clone["name"] == "My Folio"
    assert clone["subdomain"] == "myfolio"
    assert clone["styles"] == {"primary": "#111827"}
    assert clone["is_template"] is False

    page = client.get(f"/pages/{home_page(client, clone['id'], TENANT_B)['id']}", headers=auth(TENANT_B)).json()
    assert page["draft_content"] == [hero("Published look")]
    assert page["published_content"] is None
    assert page["has_unpublished_changes"] is True

    assert "Coming Soon" in client.get("/site/myfolio.sitebuilder.local").text
    assert client.get(f"/sites/{clone['id']}", headers=auth(TENANT_A)).status_code == 404


def test_clone_of_never_published_template_uses_draft() -> None:
    template = _make_template(publish=False)
    clone = client.post(
        f"/templates/{template['id']}/clone", json={"name": "Copy", "subdomain": "copy-site"}, headers=auth(TENANT_B)
    ).json()
    page = client.get(f"/pages/{home_page(client, clone['id'], TENANT_B)['id']}", headers=auth(TENANT_B)).json()
    assert page["draft_content"] == [hero("Published look")]


def test_clone_errors() -> None:
    template = _make_template()
    unknown = client.post("/templates/nope/clone", json={"name": "X", "subdomain": "xsite"}, headers=auth(TENANT_B))
    assert unknown.status_code == 404

    taken = client.post(
        f"/templates/{template['id']}/clone", json={"name": "X", "subdomain": "folio"}, headers=auth(TENANT_B)
    )
    assert taken.status_code == 409
    assert taken.json()["field"] == "subdomain"

    reserved = client.post(
        f"/templates/{template['id']}/clone", json={"name": "X", "subdomain": "www"}, headers=auth(TENANT_B)
    )
    assert reserved.status_code == 422

    plain = create_site(client, TENANT_A, name="Plain", subdomain="plain")
    not_template = client.post(
        f"/templates/{plain['id']}/clone", json={"name": "X", "subdomain": "xsite"}, headers=auth(TENANT_B)
    )
    assert not_template.status_code == 404


def test_banned_templates_are_hidden(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_TENANTS", "Moderator")
    template = _make_template()
    resp = client.post(f"/admin/sites/{template['id']}/ban", json={"reason": "abuse"}, headers=auth("moderator"))
    assert resp.status_code == 200

    assert client.get("/templates", headers=auth(TENANT_B)).json() == []
    assert client.get("/templates/categories", headers=auth(TENANT_B)).json() == []
    clone = client.post(
        f"/templates/{template['id']}/clone", json={"name": "X", "subdomain": "xsite"}, headers=auth(TENANT_B)
    )
    assert clone.status_code == 404


def test_moderation_requires_admin_tenant(monkeypatch) -> None:
    monkeypatch.delenv("ADMIN_TENANTS", raising=False)
    site = create_site(client)
    resp = client.post(f"/admin/sites/{site['id']}/ban", json={"reason": "spam"}, headers=auth(TENANT_A))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Admin access required"

    monkeypatch.setenv("ADMIN_TENANTS", "moderator")
    assert client.post("/admin/sites/missing/ban", json={"reason": "spam"}, headers=auth("moderator")).status_code == 404
    assert client.post(f"/admin/sites/{site['id']}/ban", json={}, headers=auth("moderator")).status_code == 422
