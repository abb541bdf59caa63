"""Content model inference module for site-schema-mcp."""

from site_schema_mcp.inference.builder import (
    MARKDOWN_CONTENT_FIELD,
    build_field,
    build_fields,
    build_list_field,
)
from site_schema_mcp.inference.consolidation import (
    coerce_simple_field_types,
    compute_dsc,
    consolidate_fields,
    consolidate_list_items,
    consolidate_object_fields_list,
    consolidate_object_fields_list_with_dsc,
    merge_object_fields_list,
)
from site_schema_mcp.inference.fields import Field, FieldType, PartialObjectModel
from site_schema_mcp.inference.generator import SchemaGeneratorResult, generate_schema
from site_schema_mcp.inference.value_types import infer_scalar_type, infer_value_field

__all__ = [
    "MARKDOWN_CONTENT_FIELD",
    "Field",
    "FieldType",
    "PartialObjectModel",
    "SchemaGeneratorResult",
    "build_field",
    "build_fields",
    "build_list_field",
    "coerce_simple_field_types",
    "compute_dsc",
    "consolidate_fields",
    "consolidate_list_items",
    "consolidate_object_fields_list",
    "consolidate_object_fields_list_with_dsc",
    "generate_schema",
    "infer_scalar_type",
    "infer_value_field",
    "merge_object_fields_list",
]
