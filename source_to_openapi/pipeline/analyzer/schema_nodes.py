"""
Schema node definitions.

These nodes represent resolved schema fragments, ready to be published in
the components section of the document. A declaration resolves either to a
plain SchemaNode or to a ComposedSchema (allOf of other schemas).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

REF_PREFIX = "#/components/schemas/"

ANY_VALUE = "AnyValue"
ANY_VALUE_DESCRIPTION = "Can be anything: string, number, array, object, etc., including `null`"

MODELLED_KEYWORDS = frozenset(
    {
        "$ref",
        "type",
        "format",
        "nullable",
        "required",
        "items",
        "enum",
        "properties",
        "additionalProperties",
        "oneOf",
        "anyOf",
        "allOf",
        "example",
        "description",
    }
)


def ref_path(name: str) -> str:
    """Build the reference string for a schema name."""
    return f"{REF_PREFIX}{name}"


def ref_name(ref: str) -> str:
    """Return the last path segment of a reference string."""
    return ref.rsplit("/", 1)[-1]


@dataclass
class SchemaNode:
    """A schema fragment.

    A node populates at most one primary shape: a reference, a primitive
    type, an object with properties or an array with items. Reference nodes
    carry no sibling object/array data.
    """

    type: str = ""  # "string", "integer", "number", "boolean", "object", "array"
    format: str = ""
    nullable: bool = False
    ref: str = ""  # "#/components/schemas/Name"
    items: SchemaNode | None = None
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    enum: list[str] = field(default_factory=list)
    additional_properties: SchemaNode | None = None
    one_of: list[SchemaNode] = field(default_factory=list)
    any_of: list[SchemaNode] = field(default_factory=list)
    all_of: list[SchemaNode] = field(default_factory=list)
    example: Any = None
    description: str = ""
    # Keywords with no field of their own (maxLength, pattern, default, x-...)
    extra: dict[str, Any] = field(default_factory=dict)

    # Metadata, never serialized
    real_name: str = ""
    custom_name: str = ""

    @property
    def is_ref(self) -> bool:
        return bool(self.ref)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the document representation."""
        d: dict[str, Any] = {}
        if self.ref:
            d["$ref"] = self.ref
        if self.nullable:
            d["nullable"] = True
        if self.required:
            d["required"] = list(self.required)
        if self.type:
            d["type"] = self.type
        if self.format:
            d["format"] = self.format
        if self.items is not None:
            d["items"] = self.items.to_dict()
        if self.enum:
            d["enum"] = list(self.enum)
        if self.properties:
            d["properties"] = {name: prop.to_dict() for name, prop in self.properties.items()}
        if self.additional_properties is not None:
            d["additionalProperties"] = self.additional_properties.to_dict()
        if self.one_of:
            d["oneOf"] = [s.to_dict() for s in self.one_of]
        if self.any_of:
            d["anyOf"] = [s.to_dict() for s in self.any_of]
        if self.all_of:
            d["allOf"] = [s.to_dict() for s in self.all_of]
        if self.example is not None:
            d["example"] = self.example
        if self.description:
            d["description"] = self.description
        d.update(self.extra)
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> SchemaNode:
        """Build a node from its document representation."""
        node = SchemaNode(
            type=d.get("type", ""),
            format=d.get("format", ""),
            nullable=bool(d.get("nullable", False)),
            ref=d.get("$ref", ""),
            required=list(d.get("required") or []),
            enum=list(d.get("enum") or []),
            example=d.get("example"),
            description=d.get("description", ""),
        )
        if isinstance(d.get("items"), dict):
            node.items = SchemaNode.from_dict(d["items"])
        for name, prop in (d.get("properties") or {}).items():
            node.properties[name] = SchemaNode.from_dict(prop or {})
        if isinstance(d.get("additionalProperties"), dict):
            node.additional_properties = SchemaNode.from_dict(d["additionalProperties"])
        elif "additionalProperties" in d:
            # additionalProperties: false
            node.extra["additionalProperties"] = d["additionalProperties"]
        node.extra.update((key, value) for key, value in d.items() if key not in MODELLED_KEYWORDS)
        node.one_of = [SchemaNode.from_dict(s) for s in d.get("oneOf") or []]
        node.any_of = [SchemaNode.from_dict(s) for s in d.get("anyOf") or []]
        node.all_of = [SchemaNode.from_dict(s) for s in d.get("allOf") or []]
        if node.ref:
            node.real_name = ref_name(node.ref)
        return node


@dataclass
class ComposedSchema:
    """A schema made of other schemas (allOf)."""

    all_of: list[SchemaNode] = field(default_factory=list)

    # Metadata, never serialized
    real_name: str = ""
    custom_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"allOf": [s.to_dict() for s in self.all_of]}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> ComposedSchema:
        return ComposedSchema(all_of=[SchemaNode.from_dict(s) for s in d.get("allOf") or []])


Schema = SchemaNode | ComposedSchema


def schema_from_dict(d: dict[str, Any]) -> Schema:
    """Build a component schema; a bare allOf is a composed schema."""
    if set(d) == {"allOf"}:
        return ComposedSchema.from_dict(d)
    return SchemaNode.from_dict(d)


def any_value_schema() -> SchemaNode:
    """The sentinel schema referenced by dynamic values."""
    return SchemaNode(description=ANY_VALUE_DESCRIPTION, real_name=ANY_VALUE)
