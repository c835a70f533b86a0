"""Pytest fixtures for API and service unit tests."""

import os

import pytest

from apps.api.services.block_schema import FieldSchema
from apps.api.services.registry import BlockDefinition, BlockRegistry, build_default_registry

# Ensure tests can find apps when run from project root
os.environ.setdefault("PYTHONPATH", os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "..")))
os.environ.setdefault("ENV", "test")


@pytest.fixture
def registry() -> BlockRegistry:
    """Fresh registry with the built-in block types."""
    return build_default_registry()


@pytest.fixture
def site() -> dict:
    """Site record as returned by the repo, without touching the DB."""
    return {
        "id": "site-1",
        "name": "Acme",
        "description": "Acme widgets",
        "styles": {"primary": "#1e40af", "fontHeading": "Playfair Display"},
        "navigation": [{"label": "About", "href": "/about"}, {"label": "Blog", "href": "https://blog.acme.com"}],
        "logo_url": None,
        "nav_color": None,
        "custom_head_code": None,
        "custom_body_code": None,
    }


@pytest.fixture
def broken_template_registry() -> BlockRegistry:
    """Registry whose only block points at a template that does not exist."""
    return BlockRegistry(
        [
            BlockDefinition(
                type="broken",
                name="Broken",
                description="Template is missing",
                category="content",
                template="blocks/does_not_exist.html",
                fields={"title": FieldSchema(label="Title", type="text", default="")},
            )
        ]
    )
