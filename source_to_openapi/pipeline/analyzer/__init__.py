"""
Analyzer module.

Contains tag extraction, type resolution, the schema registry and the
JSON:API envelope generator.
"""

from __future__ import annotations

from .equality import structurally_equal
from .jsonapi import EnvelopeGenerator, Resource, is_resource, transitive_closure
from .registry import SchemaRegistry
from .schema_nodes import (
    ANY_VALUE,
    REF_PREFIX,
    ComposedSchema,
    Schema,
    SchemaNode,
    ref_name,
    ref_path,
    schema_from_dict,
)
from .tags import (
    FieldAnnotation,
    ResourceRole,
    SchemaDirective,
    extract_field_annotation,
    parse_example,
    parse_schema_directive,
    parse_struct_tag,
)
from .type_resolver import PRIMITIVE_TYPES, TypeResolver

__all__ = [
    "ANY_VALUE",
    "REF_PREFIX",
    "SchemaNode",
    "ComposedSchema",
    "Schema",
    "ref_name",
    "ref_path",
    "schema_from_dict",
    "structurally_equal",
    "FieldAnnotation",
    "ResourceRole",
    "SchemaDirective",
    "extract_field_annotation",
    "parse_example",
    "parse_schema_directive",
    "parse_struct_tag",
    "PRIMITIVE_TYPES",
    "TypeResolver",
    "SchemaRegistry",
    "EnvelopeGenerator",
    "Resource",
    "is_resource",
    "transitive_closure",
]
