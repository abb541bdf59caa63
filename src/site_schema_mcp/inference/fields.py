"""Field definitions produced by content model inference."""

from dataclasses import dataclass, replace
from typing import Any, Literal, NamedTuple

FieldType = Literal[
    "string",
    "text",
    "markdown",
    "color",
    "image",
    "date",
    "datetime",
    "number",
    "boolean",
    "object",
    "list",
    "model",
    "enum",
    "reference",
]

NumberSubtype = Literal["int", "float"]

# Types whose values are all plain strings in the source documents
STRING_TYPES: frozenset[str] = frozenset(
    {"string", "text", "markdown", "date", "datetime", "color", "image"}
)

FieldPath = tuple[str | int, ...]


@dataclass(frozen=True)
class Field:
    """A typed node of an inferred schema tree.

    Named fields describe object properties. List item definitions are the
    same structure without ``name`` and ``label``.
    """

    type: FieldType
    name: str | None = None
    label: str | None = None
    subtype: NumberSubtype | None = None
    fields: tuple["Field", ...] | None = None
    """Child fields of an ``object`` field."""

    items: "Field | None" = None
    """Element definition of a ``list`` field."""

    models: tuple[str, ...] | None = None
    """Object model names referenced by a ``model`` field."""

    def named(self, name: str, label: str | None) -> "Field":
        """Return a copy of this field carrying the given name and label."""
        return replace(self, name=name, label=label)

    def rename_models(self, names: dict[str, str]) -> "Field":
        """Return a copy with every referenced model name mapped through ``names``."""
        changes: dict[str, Any] = {}
        if self.models is not None:
            changes["models"] = tuple(names.get(name, name) for name in self.models)
        if self.fields is not None:
            changes["fields"] = tuple(f.rename_models(names) for f in self.fields)
        if self.items is not None:
            changes["items"] = self.items.rename_models(names)
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        """Render the field in the config schema dictionary shape."""
        result: dict[str, Any] = {"type": self.type}
        if self.name is not None:
            result["name"] = self.name
        if self.label is not None:
            result["label"] = self.label
        if self.subtype is not None:
            result["subtype"] = self.subtype
        if self.fields is not None:
            result["fields"] = [f.to_dict() for f in self.fields]
        if self.items is not None:
            result["items"] = self.items.to_dict()
        if self.models is not None:
            result["models"] = list(self.models)
        return result


@dataclass(frozen=True)
class PartialObjectModel:
    """An object shape extracted from list items, not yet given its final name."""

    name: str
    fields: tuple[Field, ...]

    def rename_models(self, names: dict[str, str]) -> "PartialObjectModel":
        return PartialObjectModel(
            name=names.get(self.name, self.name),
            fields=tuple(f.rename_models(names) for f in self.fields),
        )


class FieldsResult(NamedTuple):
    """Fields of one object together with the object models known so far."""

    fields: tuple[Field, ...]
    object_models: tuple[PartialObjectModel, ...]


class FieldResult(NamedTuple):
    """A single field or list item definition with the object models known so far."""

    field: Field
    object_models: tuple[PartialObjectModel, ...]


def coerced_type(field: Field) -> str:
    """Get the field type used for shape comparison.

    All string-like types collapse to ``string``. The collapsed type is only
    used to compare shapes, never stored in a merged field.
    """
    return "string" if field.type in STRING_TYPES else field.type
