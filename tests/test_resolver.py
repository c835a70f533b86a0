"""Hostname + path resolution in published and draft modes."""

from fastapi.testclient import TestClient

from apps.api.main import app
from apps.api.services import repo
from apps.api.services.resolver import ContentMode, ResolutionStatus, resolve
from tests.conftest import TENANT_A, auth, create_site, hero, home_page, save_draft

client = TestClient(app)


def test_unknown_and_platform_hosts() -> None:
    assert resolve("nobody.sitebuilder.local", "/").status == ResolutionStatus.SITE_NOT_FOUND
    assert resolve("sitebuilder.local", "/").status == ResolutionStatus.SITE_NOT_FOUND
    assert resolve("app.sitebuilder.local", "/").status == ResolutionStatus.SITE_NOT_FOUND
    assert resolve("", "/").status == ResolutionStatus.SITE_NOT_FOUND


def test_draft_mode_sees_unpublished_content() -> None:
    site = create_site(client)
    save_draft(client, home_page(client, site["id"])["id"], [hero("Draft")])

    published = resolve("acme.sitebuilder.local", "/")
    assert published.status == ResolutionStatus.COMING_SOON
    assert published.site["id"] == site["id"]
    assert published.content is None

    draft = resolve("acme.sitebuilder.local:8080", "", ContentMode.DRAFT)
    assert draft.status == ResolutionStatus.FOUND
    assert draft.content == [hero("Draft")]


def test_published_mode_and_missing_page() -> None:
    site = create_site(client)
    save_draft(client, home_page(client, site["id"])["id"], [hero("Live")])
    client.post(f"/sites/{site['id']}/publish", headers=auth(TENANT_A))

    found = resolve("ACME.sitebuilder.local", "/")
    assert found.status == ResolutionStatus.FOUND
    assert found.page["is_home_page"] is True
    assert found.content == [hero("Live")]

    assert resolve("acme.sitebuilder.local", "/pricing").status == ResolutionStatus.PAGE_NOT_FOUND


def test_banned_is_distinct_from_not_found() -> None:
    site = create_site(client)
    repo.set_site_ban(site["id"], True, "spam")
    resolution = resolve("acme.sitebuilder.local", "/")
    assert resolution.status == ResolutionStatus.BANNED
    assert resolution.page is None


def test_lookup_by_subdomain_or_custom_domain() -> None:
    first = create_site(client, name="Alpha", subdomain="alpha")
    create_site(client, name="Beta", subdomain="beta", custom_domain="alpha.io")
    assert repo.find_site_by_lookup_key("ALPHA")["id"] == first["id"]
    assert repo.find_site_by_lookup_key("alpha.io")["name"] == "Beta"
    assert repo.find_site_by_lookup_key("") is None
