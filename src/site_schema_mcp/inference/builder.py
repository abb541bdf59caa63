"""Field tree builder.

Walks one parsed document and builds its field tree. Values that cannot be
typed are dropped; a document without a single typed field yields None.
"""

import logging
from typing import Any

from site_schema_mcp.inference.consolidation import consolidate_list_items
from site_schema_mcp.inference.fields import (
    Field,
    FieldPath,
    FieldResult,
    FieldsResult,
    PartialObjectModel,
)
from site_schema_mcp.inference.naming import start_case
from site_schema_mcp.inference.value_types import infer_value_field

LOGGER = logging.getLogger(__name__)

# Key injected by the page parser for the body of a markdown file
MARKDOWN_CONTENT_FIELD = "markdown_content"


def build_fields(
    value: dict[Any, Any],
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldsResult | None:
    """Build the fields of a key-value document or nested object.

    Args:
        value: Parsed mapping.
        field_path: Path of the mapping, used for diagnostics.
        object_models: Object models extracted so far.

    Returns:
        Fields in key order and the updated object models, or None if no
        entry could be typed.
    """
    fields: list[Field] = []
    for key, field_value in value.items():
        name = str(key)
        result = build_field(field_value, name, field_path + (name,), object_models)
        if result is None:
            continue
        fields.append(result.field)
        object_models = result.object_models
    if not fields:
        return None
    return FieldsResult(tuple(fields), object_models)


def build_field(
    value: Any,
    name: str,
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldResult | None:
    """Build a named field for one document entry."""
    if name == MARKDOWN_CONTENT_FIELD:
        return FieldResult(
            Field(type="markdown", name=name, label="Content"), object_models
        )
    result = build_field_definition(value, field_path, object_models)
    if result is None:
        LOGGER.debug("No type inferred for %s", "/".join(map(str, field_path)))
        return None
    return FieldResult(result.field.named(name, start_case(name)), result.object_models)


def build_field_definition(
    value: Any,
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldResult | None:
    """Build an anonymous field definition for any parsed value."""
    if isinstance(value, dict):
        result = build_fields(value, field_path, object_models)
        if result is None:
            return None
        return FieldResult(Field(type="object", fields=result.fields), result.object_models)
    if isinstance(value, list):
        return build_list_field(value, field_path, object_models)
    field = infer_value_field(value)
    if field is None:
        return None
    return FieldResult(field, object_models)


def build_list_field(
    value: list[Any],
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldResult | None:
    """Build a list field whose items describe every element of ``value``.

    Args:
        value: Parsed array.
        field_path: Path of the array, used for diagnostics.
        object_models: Object models extracted so far.

    Returns:
        Anonymous ``list`` field and the updated object models, or None if the
        array is empty, nests arrays, or its elements cannot be unified.
    """
    if not value:
        return None
    items: list[Field] = []
    for index, list_item in enumerate(value):
        if isinstance(list_item, list):
            LOGGER.debug("Nested arrays in %s", "/".join(map(str, field_path)))
            return None
        result = build_field_definition(list_item, field_path + (index,), object_models)
        if result is None:
            continue
        items.append(result.field)
        object_models = result.object_models
    if not items:
        return None
    result = consolidate_list_items(items, field_path, object_models)
    if result is None:
        LOGGER.debug("Incompatible list items in %s", "/".join(map(str, field_path)))
        return None
    return FieldResult(Field(type="list", items=result.field), result.object_models)
