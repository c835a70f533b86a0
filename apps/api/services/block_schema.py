"""Field schemas for block data and the pydantic validation layer generated from them.

Each block type declares its editable fields as FieldSchema entries. A pydantic model is
generated per block type so stored JSON is validated structurally at the boundary instead
of being trusted as-is at render time.
"""

import copy
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, create_model
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

FieldType = Literal["text", "textarea", "url", "image", "number", "boolean", "select", "array"]

# Relative links, anchors and common schemes; empty string allowed (unset).
URL_PATTERN = r"^(?:$|#|/|https?://|mailto:|tel:)"
IMAGE_PATTERN = r"^(?:$|/|https?://|data:image/)"


@dataclass(frozen=True)
class FieldSchema:
    """One editable field of a block. item_fields describes objects inside an array field."""

    label: str
    type: FieldType
    default: Any = None
    required: bool = False
    options: tuple[str, ...] = ()
    item_fields: Mapping[str, "FieldSchema"] | None = None
    max_length: int | None = None

    def default_value(self) -> Any:
        return copy.deepcopy(self.default)

    def describe(self) -> dict[str, Any]:
        """JSON-friendly description for the editor's properties panel."""
        out: dict[str, Any] = {
            "label": self.label,
            "type": self.type,
            "default": self.default_value(),
            "required": self.required,
        }
        if self.options:
            out["options"] = list(self.options)
        if self.item_fields is not None:
            out["item_fields"] = {k: v.describe() for k, v in self.item_fields.items()}
        if self.max_length is not None:
            out["max_length"] = self.max_length
        return out


@dataclass
class BlockValidation:
    """Result of validating one block's data. errors maps dotted field location -> message."""

    data: dict[str, Any]
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _string_annotation(field_schema: FieldSchema, pattern: str | None = None) -> Any:
    if field_schema.max_length is None and pattern is None:
        return str
    return Annotated[str, StringConstraints(max_length=field_schema.max_length, pattern=pattern)]


def _annotation_for(model_name: str, name: str, field_schema: FieldSchema) -> Any:
    kind = field_schema.type
    if kind in ("text", "textarea"):
        return _string_annotation(field_schema)
    if kind == "url":
        return _string_annotation(field_schema, URL_PATTERN)
    if kind == "image":
        return _string_annotation(field_schema, IMAGE_PATTERN)
    if kind == "number":
        return Union[int, float]
    if kind == "boolean":
        return bool
    if kind == "select":
        if not field_schema.options:
            raise ValueError(f"select field {model_name}.{name} declares no options")
        return Literal[field_schema.options]
    if kind == "array":
        if field_schema.item_fields is None:
            return list[str]
        item_model = build_data_model(f"{model_name}_{name}_item", field_schema.item_fields)
        return list[item_model]
    raise ValueError(f"unknown field type {kind!r} for {model_name}.{name}")


def build_data_model(model_name: str, fields: Mapping[str, FieldSchema]) -> type[BaseModel]:
    """Generate a pydantic model for a block's data. Unknown keys are kept (extra='allow')."""
    definitions: dict[str, Any] = {}
    for name, field_schema in fields.items():
        annotation = _annotation_for(model_name, name, field_schema)
        if field_schema.required:
            definitions[name] = (annotation, Field(..., title=field_schema.label))
        else:
            definitions[name] = (
                annotation,
                Field(default_factory=partial(copy.deepcopy, field_schema.default), title=field_schema.label),
            )
    return create_model(model_name, __config__=ConfigDict(extra="allow"), **definitions)


def _error_key(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "data"


def validate_data(model: type[BaseModel], data: Any) -> BlockValidation:
    """Validate data against a generated model. Never raises; errors are collected per field."""
    try:
        validated = model.model_validate(data)
    except PydanticValidationError as exc:
        errors = {_error_key(tuple(err["loc"])): err["msg"] for err in exc.errors()}
        return BlockValidation(data=data if isinstance(data, dict) else {}, errors=errors)
    return BlockValidation(data=validated.model_dump(mode="json"))


def repair_data(
    model: type[BaseModel],
    fields: Mapping[str, FieldSchema],
    data: Any,
    *,
    block_type: str = "",
) -> dict[str, Any]:
    """
    Return render-safe data: defaults applied, invalid top-level fields replaced by their defaults.

    Falls back to the full default payload when the data cannot be repaired.
    """
    defaults = {name: f.default_value() for name, f in fields.items()}
    if not isinstance(data, dict):
        logger.warning("Block data is not an object type=%s; using defaults", block_type)
        return validate_data(model, defaults).data

    result = validate_data(model, data)
    if result.ok:
        return result.data

    bad_fields = {key.split(".", 1)[0] for key in result.errors}
    logger.warning("Invalid block data type=%s fields=%s; falling back to defaults", block_type, sorted(bad_fields))
    repaired = dict(data)
    for name in bad_fields:
        if name in fields:
            repaired[name] = fields[name].default_value()
        else:
            repaired.pop(name, None)
    retry = validate_data(model, repaired)
    if retry.ok:
        return retry.data
    return validate_data(model, defaults).data
