"""Block registry: lookup, palette order, defaults, schema validation and render-time repair."""

import uuid

import pytest

from apps.api.services.block_schema import FieldSchema
from apps.api.services.registry import (
    DEFAULT_REGISTRY,
    BlockDefinition,
    BlockRegistry,
    prepare_block_data,
    toolbar_label,
    validate_block_data,
)

BUILTIN_TYPES = [
    "hero",
    "features",
    "cta",
    "faq",
    "pricing",
    "testimonials",
    "stats",
    "team",
    "newsletter",
    "contact_form",
    "video",
    "footer",
]


def test_default_registry_lists_builtin_blocks_in_palette_order() -> None:
    assert [d.type for d in DEFAULT_REGISTRY.list_all()] == BUILTIN_TYPES
    assert len(DEFAULT_REGISTRY) == len(BUILTIN_TYPES)


def test_resolve_unknown_type_returns_none(registry) -> None:
    assert registry.resolve("hero").name == "Hero"
    assert registry.resolve("carousel") is None
    assert registry.resolve(None) is None
    assert registry.resolve(42) is None
    assert "hero" in registry
    assert "carousel" not in registry


def test_duplicate_block_type_rejected() -> None:
    definition = BlockDefinition(
        type="note",
        name="Note",
        description="",
        category="content",
        template="blocks/hero.html",
        fields={"title": FieldSchema(label="Title", type="text", default="")},
    )
    with pytest.raises(ValueError, match="duplicate"):
        BlockRegistry([definition, definition])


def test_new_block_uses_default_data(registry) -> None:
    block = registry.new_block("cta")
    assert block["type"] == "cta"
    assert block["visible"] is True
    assert block["data"] == registry.resolve("cta").default_data()
    uuid.UUID(block["id"])
    assert registry.new_block("carousel") is None


def test_default_data_is_a_fresh_copy(registry) -> None:
    features = registry.resolve("features")
    data = features.default_data()
    data["features"].append({"title": "Extra", "description": ""})
    assert len(features.default_data()["features"]) == 3


def test_toolbar_label(registry) -> None:
    assert toolbar_label("contact_form", registry) == "Contact Form"
    assert toolbar_label("cta", registry) == "Call to Action"
    assert toolbar_label("image-gallery", registry) == "Image Gallery"


def test_validate_reports_missing_required_item_field(registry) -> None:
    result = validate_block_data(registry.resolve("faq"), {"items": [{"question": "Why?"}]})
    assert not result.ok
    assert "items.0.answer" in result.errors


def test_validate_rejects_unknown_select_option(registry) -> None:
    result = validate_block_data(registry.resolve("hero"), {"title": "Hi", "layout": "diagonal"})
    assert not result.ok
    assert "layout" in result.errors


def test_validate_applies_defaults_and_keeps_unknown_keys(registry) -> None:
    result = validate_block_data(registry.resolve("hero"), {"title": "Hi", "anchor": "top"})
    assert result.ok
    assert result.data["title"] == "Hi"
    assert result.data["layout"] == "centered"
    assert result.data["anchor"] == "top"


def test_validate_rejects_unsafe_link(registry) -> None:
    result = validate_block_data(registry.resolve("cta"), {"buttonLink": "javascript:alert(1)"})
    assert "buttonLink" in result.errors


def test_prepare_replaces_invalid_fields_with_defaults(registry) -> None:
    hero = registry.resolve("hero")
    data = {"title": "Hi", "layout": "diagonal"}
    prepared = prepare_block_data(hero, data)
    assert prepared["title"] == "Hi"
    assert prepared["layout"] == "centered"
    assert data == {"title": "Hi", "layout": "diagonal"}


def test_prepare_non_object_data_falls_back_to_defaults(registry) -> None:
    video = registry.resolve("video")
    assert prepare_block_data(video, "not-an-object") == video.default_data()


def test_prepare_drops_unsafe_video_url(registry) -> None:
    prepared = prepare_block_data(registry.resolve("video"), {"url": "javascript:alert(1)", "caption": "Demo"})
    assert prepared["url"] == ""
    assert prepared["caption"] == "Demo"


def test_describe_is_json_friendly(registry) -> None:
    described = registry.resolve("pricing").describe()
    assert described["type"] == "pricing"
    assert described["fields"]["plans"]["type"] == "array"
    assert "priceMonthly" in described["fields"]["plans"]["item_fields"]
