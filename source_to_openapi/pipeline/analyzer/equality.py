"""
Structural equality over schemas.

Mappings compare regardless of key order, sequences (required, enum, allOf
members...) compare in order. Name metadata is not part of the structure.
"""

from __future__ import annotations

from typing import Any

from .schema_nodes import ComposedSchema, Schema, SchemaNode


def structurally_equal(a: Schema | None, b: Schema | None) -> bool:
    """Compare two schemas (plain or composed) structurally."""
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, ComposedSchema):
        return isinstance(b, ComposedSchema) and _nodes_equal(a.all_of, b.all_of)
    if isinstance(b, ComposedSchema):
        return False
    return _node_equal(a, b)


def _node_equal(a: SchemaNode | None, b: SchemaNode | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return (
        a.type == b.type
        and a.format == b.format
        and a.nullable == b.nullable
        and a.ref == b.ref
        and a.description == b.description
        and a.required == b.required
        and a.enum == b.enum
        and values_equal(a.example, b.example)
        and values_equal(a.extra, b.extra)
        and _node_equal(a.items, b.items)
        and _node_equal(a.additional_properties, b.additional_properties)
        and _properties_equal(a.properties, b.properties)
        and _nodes_equal(a.one_of, b.one_of)
        and _nodes_equal(a.any_of, b.any_of)
        and _nodes_equal(a.all_of, b.all_of)
    )


def _properties_equal(a: dict[str, SchemaNode], b: dict[str, SchemaNode]) -> bool:
    if a.keys() != b.keys():
        return False
    return all(_node_equal(a[name], b[name]) for name in a)


def _nodes_equal(a: list[SchemaNode], b: list[SchemaNode]) -> bool:
    return len(a) == len(b) and all(_node_equal(x, y) for x, y in zip(a, b))


def values_equal(a: Any, b: Any) -> bool:
    """Compare decoded document values (operations, examples)."""
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b
