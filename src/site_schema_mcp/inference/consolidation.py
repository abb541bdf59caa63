"""Consolidation of inferred fields and object shapes.

Merges field definitions inferred from several values or documents into a
minimal set of shared definitions. A None result means the inputs cannot be
unified; callers drop the field or keep the shapes apart instead of guessing.
"""

import logging
import uuid
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from site_schema_mcp.inference.fields import (
    STRING_TYPES,
    Field,
    FieldPath,
    FieldResult,
    FieldsResult,
    FieldType,
    PartialObjectModel,
    coerced_type,
)
from site_schema_mcp.inference.naming import start_case

LOGGER = logging.getLogger(__name__)

# Types never produced by inference, seeing them means a caller bug
_UNSUPPORTED_TYPES = frozenset({"enum", "reference"})


class FieldsListResult(NamedTuple):
    """Merged shapes with the object models known so far."""

    fields_list: tuple[tuple[Field, ...], ...]
    object_models: tuple[PartialObjectModel, ...]


class FieldsCluster(NamedTuple):
    """A merged shape and the input indexes folded into it."""

    fields: tuple[Field, ...]
    indexes: tuple[int, ...]


class ClustersResult(NamedTuple):
    clusters: tuple[FieldsCluster, ...]
    object_models: tuple[PartialObjectModel, ...]


class SimilarFieldsResult(NamedTuple):
    """Outcome of a single merge pass of one shape over a list of shapes."""

    merged_fields: tuple[Field, ...]
    merged_indexes: tuple[int, ...]
    unmerged_indexes: tuple[int, ...]
    object_models: tuple[PartialObjectModel, ...]


def coerce_simple_field_types(field_types: Iterable[str]) -> FieldType | None:
    """Find a single type able to hold values of all given string-like types.

    Args:
        field_types: Distinct field types to unify.

    Returns:
        markdown, text or string, or None if a non string-like type is present.
    """
    types = set(field_types)
    if not types <= STRING_TYPES:
        return None
    if "markdown" in types:
        return "markdown"
    if "text" in types:
        return "text"
    return "string"


def _unique_types(fields: Sequence[Field]) -> list[str]:
    return list(dict.fromkeys(field.type for field in fields))


def _merge_numbers(fields: Sequence[Field]) -> Field:
    subtypes = {field.subtype for field in fields}
    subtype = subtypes.pop() if len(subtypes) == 1 else None
    return Field(type="number", subtype=subtype)


def _new_model_name() -> str:
    # Temporary key, replaced by object_<n> when the schema is assembled
    return uuid.uuid4().hex[:10]


def consolidate_list_items(
    items: Sequence[Field],
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldResult | None:
    """Consolidate the item definitions of one list into a single definition.

    Object items are grouped by exact shape. A single group stays an inline
    ``object``; several groups are extracted into object models referenced by
    a ``model`` item definition.

    Args:
        items: Anonymous item definitions, one per typed list element.
        field_path: Path of the list, used for diagnostics.
        object_models: Object models extracted so far.

    Returns:
        Unified item definition and the updated object models, or None.
    """
    if not items:
        return None
    types = _unique_types(items)
    if len(types) > 1:
        field_type = coerce_simple_field_types(types)
        if field_type is None:
            return None
        return FieldResult(Field(type=field_type), object_models)

    field_type = types[0]
    if field_type == "number":
        return FieldResult(_merge_numbers(items), object_models)
    if field_type == "object":
        result = consolidate_object_fields_list(
            [item.fields or () for item in items], field_path, object_models
        )
        if result is None:
            return None
        if len(result.fields_list) == 1:
            return FieldResult(
                Field(type="object", fields=result.fields_list[0]), result.object_models
            )
        models = tuple(
            PartialObjectModel(name=_new_model_name(), fields=fields)
            for fields in result.fields_list
        )
        return FieldResult(
            Field(type="model", models=tuple(model.name for model in models)),
            result.object_models + models,
        )
    if field_type == "model":
        names = dict.fromkeys(name for item in items for name in item.models or ())
        return FieldResult(Field(type="model", models=tuple(names)), object_models)
    if field_type == "list" or field_type in _UNSUPPORTED_TYPES:
        LOGGER.debug(
            "Cannot consolidate %s list items at %s",
            field_type,
            "/".join(map(str, field_path)),
        )
        return None
    return FieldResult(Field(type=field_type), object_models)


def consolidate_fields(
    fields: Sequence[Field],
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldResult | None:
    """Consolidate same-named fields from several shapes into one field.

    Args:
        fields: Fields sharing one name.
        field_path: Path of the field, used for diagnostics.
        object_models: Object models extracted so far.

    Returns:
        Consolidated field and the updated object models, or None if the
        fields cannot be unified.
    """
    if not fields:
        return None
    if len(fields) == 1:
        return FieldResult(fields[0], object_models)

    types = _unique_types(fields)
    if len(types) > 1:
        field_type = coerce_simple_field_types(types)
        if field_type is None:
            return None
        return FieldResult(Field(type=field_type), object_models)

    field_type = types[0]
    if field_type == "number":
        return FieldResult(_merge_numbers(fields), object_models)
    if field_type == "object":
        merged = merge_object_fields_list(
            [field.fields or () for field in fields], field_path, object_models
        )
        if merged is None:
            return None
        return FieldResult(Field(type="object", fields=merged.fields), merged.object_models)
    if field_type == "list":
        items = consolidate_list_items(
            [field.items for field in fields if field.items is not None],
            field_path,
            object_models,
        )
        if items is None:
            return None
        return FieldResult(Field(type="list", items=items.field), items.object_models)
    # model fields are only produced as list items
    if field_type == "model" or field_type in _UNSUPPORTED_TYPES:
        LOGGER.debug(
            "Cannot consolidate %s fields at %s", field_type, "/".join(map(str, field_path))
        )
        return None
    return FieldResult(Field(type=field_type), object_models)


def merge_object_fields_list(
    fields_list: Sequence[Sequence[Field]],
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldsResult | None:
    """Merge several shapes of the same logical object into one shape.

    Fields are grouped by name in order of first appearance and each group is
    consolidated. If one group cannot be consolidated the whole merge fails.
    """
    fields_by_name: dict[str, list[Field]] = {}
    for fields in fields_list:
        for field in fields:
            fields_by_name.setdefault(field.name or "", []).append(field)

    merged: list[Field] = []
    for name, same_named in fields_by_name.items():
        result = consolidate_fields(same_named, field_path + (name,), object_models)
        if result is None:
            return None
        object_models = result.object_models
        label = next((f.label for f in same_named if f.label), None) or start_case(name)
        merged.append(result.field.named(name, label))
    return FieldsResult(tuple(merged), object_models)


def _shape_signature(fields: Sequence[Field]) -> frozenset[tuple[str, str]]:
    return frozenset((field.name or "", coerced_type(field)) for field in fields)


def consolidate_object_fields_list(
    fields_list: Sequence[Sequence[Field]],
    field_path: FieldPath,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> FieldsListResult | None:
    """Group shapes by exact name/type signature and merge each group.

    Args:
        fields_list: Shapes to consolidate.
        field_path: Path of the owning field, used for diagnostics.
        object_models: Object models extracted so far.

    Returns:
        One merged shape per distinct signature in order of first appearance,
        or None if any group cannot be merged.
    """
    groups: dict[frozenset[tuple[str, str]], list[Sequence[Field]]] = {}
    for fields in fields_list:
        groups.setdefault(_shape_signature(fields), []).append(fields)

    merged_list: list[tuple[Field, ...]] = []
    for group in groups.values():
        result = merge_object_fields_list(group, field_path, object_models)
        if result is None:
            return None
        merged_list.append(result.fields)
        object_models = result.object_models
    return FieldsListResult(tuple(merged_list), object_models)


def get_fields_set(fields: Sequence[Field]) -> set[str]:
    """Get the ``name:type`` tokens of a shape, string-like types collapsed."""
    return {f"{field.name}:{coerced_type(field)}" for field in fields}


def compute_dsc(fields_a: Sequence[Field], fields_b: Sequence[Field]) -> float:
    """Compute the Sørensen-Dice coefficient of two shapes.

    See https://en.wikipedia.org/wiki/S%C3%B8rensen%E2%80%93Dice_coefficient
    """
    set_a = get_fields_set(fields_a)
    set_b = get_fields_set(fields_b)
    if not set_a and not set_b:
        return 1.0
    return 2 * len(set_a & set_b) / (len(set_a) + len(set_b))


def merge_similar_fields(
    fields: Sequence[Field],
    fields_list: Sequence[Sequence[Field]],
    field_path: FieldPath,
    min_coefficient: float,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> SimilarFieldsResult:
    """Fold every shape similar enough to ``fields`` into it, in one pass.

    The accumulated shape is used for each following comparison. Shapes below
    ``min_coefficient``, or whose merge fails, are reported as unmerged.
    """
    merged_fields = tuple(fields)
    merged_indexes: list[int] = []
    unmerged_indexes: list[int] = []
    for index, other_fields in enumerate(fields_list):
        if compute_dsc(merged_fields, other_fields) >= min_coefficient:
            result = merge_object_fields_list(
                [merged_fields, other_fields], field_path, object_models
            )
            if result is not None:
                merged_indexes.append(index)
                merged_fields = result.fields
                object_models = result.object_models
                continue
        unmerged_indexes.append(index)
    return SimilarFieldsResult(
        merged_fields, tuple(merged_indexes), tuple(unmerged_indexes), object_models
    )


def consolidate_object_fields_list_with_dsc(
    fields_list: Sequence[Sequence[Field]],
    field_path: FieldPath,
    min_coefficient: float,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> ClustersResult:
    """Cluster shapes by Dice similarity.

    Pops one pending shape as accumulator, folds every similar pending shape
    into it in a single pass and defers the rest, until nothing is pending.

    Args:
        fields_list: Shapes to cluster.
        field_path: Path used for diagnostics.
        min_coefficient: Minimal coefficient for two shapes to be merged.
        object_models: Object models extracted so far.

    Returns:
        Clusters with their merged shape and the input indexes they hold.
    """
    pending = list(range(len(fields_list)))
    clusters: list[FieldsCluster] = []
    while pending:
        index = pending.pop()
        result = merge_similar_fields(
            fields_list[index],
            [fields_list[i] for i in pending],
            field_path,
            min_coefficient,
            object_models,
        )
        merged = tuple(pending[i] for i in result.merged_indexes)
        clusters.append(FieldsCluster(result.merged_fields, (index,) + merged))
        pending = [pending[i] for i in result.unmerged_indexes]
        object_models = result.object_models
    return ClustersResult(tuple(clusters), object_models)
