"""Pytest fixtures and helpers for root-level tests (API flows, publish, public rendering)."""

import os

import pytest
from fastapi.testclient import TestClient

from tests._db_bootstrap import postgres_reachable

TENANT_A = "tenant_a"
TENANT_B = "tenant_b"


def auth(tenant_id: str) -> dict[str, str]:
    """Authorization header for the mock bearer scheme."""
    return {"Authorization": f"Bearer tenant:{tenant_id}"}


# Marker for tests that need real Postgres (Alembic migrations)
requires_postgres = pytest.mark.skipif(
    not postgres_reachable(os.environ.get("DATABASE_TEST_URL", "")),
    reason="DATABASE_TEST_URL not set or Postgres not reachable",
)


def create_site(client: TestClient, tenant_id: str = TENANT_A, *, name: str = "Acme", subdomain: str = "acme", **extra) -> dict:
    resp = client.post("/sites", json={"name": name, "subdomain": subdomain, **extra}, headers=auth(tenant_id))
    assert resp.status_code == 201, resp.text
    return resp.json()


def home_page(client: TestClient, site_id: str, tenant_id: str = TENANT_A) -> dict:
    resp = client.get(f"/sites/{site_id}/pages", headers=auth(tenant_id))
    assert resp.status_code == 200, resp.text
    return next(p for p in resp.json() if p["is_home_page"])


def save_draft(client: TestClient, page_id: str, content: list, tenant_id: str = TENANT_A) -> dict:
    resp = client.put(f"/pages/{page_id}/draft", json={"content": content}, headers=auth(tenant_id))
    assert resp.status_code == 200, resp.text
    return resp.json()


def hero(title: str, block_id: str = "b1", **data) -> dict:
    return {"id": block_id, "type": "hero", "data": {"title": title, **data}}
