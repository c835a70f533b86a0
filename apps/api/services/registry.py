"""Block registry: block-type identifier -> (renderer template, data schema).

The registry is built once at import time and never mutated afterwards, so request
handlers can read it concurrently without locking. Routes receive it through the
get_registry dependency; tests can override that dependency with a custom registry.
"""

import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Annotated, Any, Iterable, Mapping

from fastapi import Depends
from pydantic import BaseModel

from apps.api.services.block_schema import (
    BlockValidation,
    FieldSchema,
    build_data_model,
    repair_data,
    validate_data,
)


@dataclass(frozen=True)
class BlockDefinition:
    """One registered block type."""

    type: str
    name: str
    description: str
    category: str
    fields: Mapping[str, FieldSchema]
    template: str
    model: type[BaseModel] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        model_name = "".join(part.capitalize() for part in self.type.replace("-", "_").split("_")) + "Data"
        object.__setattr__(self, "model", build_data_model(model_name, self.fields))

    @property
    def toolbar_label(self) -> str:
        return self.name

    def default_data(self) -> dict[str, Any]:
        """Fresh payload used when a block of this type is inserted."""
        return {name: f.default_value() for name, f in self.fields.items()}

    def validate(self, data: Any) -> BlockValidation:
        return validate_data(self.model, data)

    def prepare(self, data: Any) -> dict[str, Any]:
        """Render-safe copy of data. Never raises."""
        return repair_data(self.model, self.fields, data, block_type=self.type)

    def describe(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "toolbar_label": self.toolbar_label,
            "default_data": self.default_data(),
            "fields": {k: v.describe() for k, v in self.fields.items()},
        }


class BlockRegistry:
    """Immutable, insertion-ordered lookup from block type to BlockDefinition."""

    def __init__(self, definitions: Iterable[BlockDefinition]):
        table: dict[str, BlockDefinition] = {}
        for definition in definitions:
            if definition.type in table:
                raise ValueError(f"duplicate block type registered: {definition.type!r}")
            table[definition.type] = definition
        self._table = MappingProxyType(table)

    def resolve(self, block_type: Any) -> BlockDefinition | None:
        """Definition for block_type, or None when unregistered (callers skip/warn, never fail)."""
        if not isinstance(block_type, str):
            return None
        return self._table.get(block_type)

    def list_all(self) -> tuple[BlockDefinition, ...]:
        """All definitions in registration order (editor palette order)."""
        return tuple(self._table.values())

    def new_block(self, block_type: str) -> dict[str, Any] | None:
        """Fresh block instance {id, type, data, visible} with default data, or None if unregistered."""
        definition = self.resolve(block_type)
        if definition is None:
            return None
        return {
            "id": str(uuid.uuid4()),
            "type": definition.type,
            "data": definition.default_data(),
            "visible": True,
        }

    def __contains__(self, block_type: object) -> bool:
        return isinstance(block_type, str) and block_type in self._table

    def __len__(self) -> int:
        return len(self._table)


def toolbar_label(block_type: str, registry: BlockRegistry) -> str:
    """Editor toolbar label: the registered name, else the type title-cased ("contact-form" -> "Contact Form")."""
    definition = registry.resolve(block_type)
    if definition is not None:
        return definition.toolbar_label
    return " ".join(word.capitalize() for word in str(block_type).replace("_", "-").split("-") if word)


def _text(label: str, default: str = "", **kw: Any) -> FieldSchema:
    return FieldSchema(label=label, type="text", default=default, **kw)


def _textarea(label: str, default: str = "", **kw: Any) -> FieldSchema:
    return FieldSchema(label=label, type="textarea", default=default, **kw)


HERO_IMAGE = "https://images.unsplash.com/photo-1557683316-973673baf926?w=800"

BUILTIN_BLOCKS: tuple[BlockDefinition, ...] = (
    BlockDefinition(
        type="hero",
        name="Hero",
        description="Large banner section with image and text",
        category="headers",
        template="blocks/hero.html",
        fields={
            "title": _text("Title", "Welcome to Our Site", max_length=200),
            "subtitle": _textarea("Subtitle", "Your journey starts here"),
            "image": FieldSchema(label="Background Image", type="image", default=HERO_IMAGE),
            "buttonText": _text("Button Text", ""),
            "buttonLink": FieldSchema(label="Button Link", type="url", default="#"),
            "layout": FieldSchema(
                label="Layout", type="select", default="centered", options=("centered", "split", "left")
            ),
        },
    ),
    BlockDefinition(
        type="features",
        name="Features",
        description="Grid of feature cards",
        category="content",
        template="blocks/features.html",
        fields={
            "title": _text("Section Title", "Our Features"),
            "features": FieldSchema(
                label="Features",
                type="array",
                default=[
                    {"title": "Feature 1", "description": "Description here"},
                    {"title": "Feature 2", "description": "Description here"},
                    {"title": "Feature 3", "description": "Description here"},
                ],
                item_fields={
                    "title": _text("Feature Title", "Feature Title"),
                    "description": _textarea("Feature Description", "Feature description"),
                },
            ),
        },
    ),
    BlockDefinition(
        type="cta",
        name="Call to Action",
        description="Prominent call-to-action section with button",
        category="marketing",
        template="blocks/cta.html",
        fields={
            "title": _text("Title", "Ready to Get Started?"),
            "subtitle": _textarea("Subtitle", "Join thousands of satisfied customers today"),
            "buttonText": _text("Button Text", "Get Started"),
            "buttonLink": FieldSchema(label="Button Link", type="url", default="#"),
            "variant": FieldSchema(label="Style", type="select", default="primary", options=("primary", "outline")),
        },
    ),
    BlockDefinition(
        type="faq",
        name="FAQ",
        description="Frequently asked questions in an accordion",
        category="content",
        template="blocks/faq.html",
        fields={
            "title": _text("Title", "Frequently Asked Questions"),
            "subtitle": _textarea("Subtitle", ""),
            "items": FieldSchema(
                label="Questions",
                type="array",
                default=[
                    {"question": "How does it work?", "answer": "It just works."},
                    {"question": "Can I cancel anytime?", "answer": "Yes, at any time."},
                ],
                item_fields={
                    "question": _text("Question", "Question", required=True),
                    "answer": _textarea("Answer", "Answer", required=True),
                },
            ),
        },
    ),
    BlockDefinition(
        type="pricing",
        name="Pricing",
        description="Pricing plans with monthly and yearly prices",
        category="marketing",
        template="blocks/pricing.html",
        fields={
            "title": _text("Title", "Simple, transparent pricing"),
            "subtitle": _textarea("Subtitle", ""),
            "plans": FieldSchema(
                label="Plans",
                type="array",
                default=[
                    {
                        "name": "Starter",
                        "priceMonthly": 9,
                        "priceYearly": 90,
                        "features": ["1 site", "Basic support"],
                        "buttonText": "Choose Starter",
                    },
                    {
                        "name": "Pro",
                        "priceMonthly": 29,
                        "priceYearly": 290,
                        "features": ["10 sites", "Priority support", "Custom domain"],
                        "buttonText": "Choose Pro",
                    },
                ],
                item_fields={
                    "name": _text("Plan Name", "Plan", required=True),
                    "priceMonthly": FieldSchema(label="Monthly Price", type="number", default=0),
                    "priceYearly": FieldSchema(label="Yearly Price", type="number", default=0),
                    "features": FieldSchema(label="Features", type="array", default=[]),
                    "buttonText": _text("Button Text", "Get Started"),
                },
            ),
        },
    ),
    BlockDefinition(
        type="testimonials",
        name="Testimonials",
        description="Customer reviews with ratings",
        category="social-proof",
        template="blocks/testimonials.html",
        fields={
            "title": _text("Title", "What our customers say"),
            "subtitle": _textarea("Subtitle", ""),
            "reviews": FieldSchema(
                label="Reviews",
                type="array",
                default=[
                    {
                        "name": "Jane Doe",
                        "role": "Founder",
                        "avatarUrl": "",
                        "content": "Fantastic service.",
                        "rating": 5,
                    }
                ],
                item_fields={
                    "name": _text("Name", "Customer", required=True),
                    "role": _text("Role", ""),
                    "avatarUrl": FieldSchema(label="Avatar", type="image", default=""),
                    "content": _textarea("Review", "", required=True),
                    "rating": FieldSchema(label="Rating", type="number", default=5),
                },
            ),
        },
    ),
    BlockDefinition(
        type="stats",
        name="Stats",
        description="Key numbers in a row",
        category="social-proof",
        template="blocks/stats.html",
        fields={
            "title": _text("Title", "By the numbers"),
            "subtitle": _textarea("Subtitle", ""),
            "stats": FieldSchema(
                label="Stats",
                type="array",
                default=[
                    {"label": "Customers", "value": "10k+", "icon": "users"},
                    {"label": "Uptime", "value": "99.9%", "icon": "activity"},
                ],
                item_fields={
                    "label": _text("Label", "Label"),
                    "value": _text("Value", "0"),
                    "icon": _text("Icon", ""),
                },
            ),
        },
    ),
    BlockDefinition(
        type="team",
        name="Team",
        description="Team members with photos and bios",
        category="content",
        template="blocks/team.html",
        fields={
            "title": _text("Title", "Meet the team"),
            "subtitle": _textarea("Subtitle", ""),
            "columns": FieldSchema(label="Columns", type="select", default="3", options=("2", "3", "4")),
            "members": FieldSchema(
                label="Members",
                type="array",
                default=[{"name": "Alex Smith", "role": "CEO", "bio": "", "avatarUrl": ""}],
                item_fields={
                    "name": _text("Name", "Name", required=True),
                    "role": _text("Role", ""),
                    "bio": _textarea("Bio", ""),
                    "avatarUrl": FieldSchema(label="Photo", type="image", default=""),
                },
            ),
        },
    ),
    BlockDefinition(
        type="newsletter",
        name="Newsletter",
        description="Email signup form",
        category="forms",
        template="blocks/newsletter.html",
        fields={
            "title": _text("Title", "Subscribe to our newsletter"),
            "subtitle": _textarea("Subtitle", "Get updates in your inbox"),
            "buttonText": _text("Button Text", "Subscribe"),
            "disclaimer": _textarea("Disclaimer", "We respect your privacy."),
        },
    ),
    BlockDefinition(
        type="contact_form",
        name="Contact Form",
        description="Contact form delivered to the site owner",
        category="forms",
        template="blocks/contact_form.html",
        fields={
            "title": _text("Title", "Contact us"),
            "subtitle": _textarea("Subtitle", "We'll get back to you shortly"),
            "successMessage": _textarea("Success Message", "Thanks! Your message has been sent."),
            "buttonText": _text("Button Text", "Send"),
        },
    ),
    BlockDefinition(
        type="video",
        name="Video",
        description="Embedded video with caption",
        category="media",
        template="blocks/video.html",
        fields={
            "title": _text("Title", ""),
            "url": FieldSchema(label="Video URL", type="url", default="", required=True),
            "caption": _textarea("Caption", ""),
        },
    ),
    BlockDefinition(
        type="footer",
        name="Footer",
        description="Footer with link columns and copyright",
        category="footers",
        template="blocks/footer.html",
        fields={
            "logo": FieldSchema(label="Logo", type="image", default=""),
            "description": _textarea("Description", ""),
            "columns": FieldSchema(
                label="Link Columns",
                type="array",
                default=[],
                item_fields={
                    "title": _text("Column Title", "Links"),
                    "links": FieldSchema(label="Links (label|href)", type="array", default=[]),
                },
            ),
            "copyright": _text("Copyright", ""),
        },
    ),
)


def build_default_registry() -> BlockRegistry:
    return BlockRegistry(BUILTIN_BLOCKS)


DEFAULT_REGISTRY = build_default_registry()


def get_registry() -> BlockRegistry:
    """FastAPI dependency returning the process-wide registry."""
    return DEFAULT_REGISTRY


RegistryDep = Annotated[BlockRegistry, Depends(get_registry)]


def validate_block_data(definition: BlockDefinition, data: Any) -> BlockValidation:
    """Editor-side validation: data with defaults applied plus field errors keyed by dotted location."""
    return definition.validate(data)


def prepare_block_data(definition: BlockDefinition, data: Any) -> dict[str, Any]:
    """Render-side preparation: invalid fields fall back to defaults. Never raises."""
    return definition.prepare(data)
