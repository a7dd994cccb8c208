"""
Tag and annotation extraction.

Turns the raw tag string of a field (`json:"name,omitempty" validate:"required"`)
and the directives found in documentation text (`@openapi:schema`,
`@openapi:example`) into structured records.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..declarations.nodes import Array, FieldDecl, Ident, Pointer, TypeDescriptor
from ..errors import ExtractionError

DESCRIPTION_TAG = "openapi-description"

_SCHEMA_DIRECTIVE = re.compile(r"@openapi:schema:?(\w+)?:?(?:\[([\w,]+)\])?")
_EXAMPLE_DIRECTIVE = re.compile(r"@openapi:example ([^\v\n]+)")
_ENUM_TOKEN = re.compile(r"^(?:enum|oneof)=(.+)$")

_TAG_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_SIGNED_INTS = {"int", "int8", "int16", "int32", "int64"}
_UNSIGNED_INTS = {"uint", "uint8", "uint16", "uint32", "uint64"}
_FLOATS = {"float", "float32", "float64"}


class ResourceRole(str, Enum):
    """Role of a field in a JSON:API resource."""

    NONE = "none"
    PRIMARY = "primary"
    ATTRIBUTE = "attr"
    RELATION = "relation"


@dataclass
class FieldAnnotation:
    """Everything the tags and documentation say about a field."""

    name: str = ""  # Serialization name
    ignored: bool = False
    required: bool = False
    enum: list[str] = field(default_factory=list)
    as_string: bool = False  # Value is encoded as a JSON string
    nullable: bool = False  # omitempty
    description: str = ""
    role: ResourceRole = ResourceRole.NONE
    role_argument: str = ""  # Resource type (primary) or member name (attr/relation)
    is_collection: bool = False  # Relation to many resources
    example: Any = None
    has_name_tag: bool = False  # Serialization name came from the tag


@dataclass
class SchemaDirective:
    """An @openapi:schema marker found in declaration documentation."""

    custom_name: str = ""


def parse_struct_tag(tag: str) -> dict[str, str]:
    """
    Tokenize a struct tag into a key -> value mapping.

    The grammar is a space separated list of `key:"value"` pairs. Values are
    double quoted and may contain the single character backslash escapes
    (\\n, \\t, \\", \\\\...); numeric escapes are not supported.

    Raises:
        ExtractionError: If the tag is malformed
    """
    result: dict[str, str] = {}
    i = 0
    n = len(tag)
    while i < n:
        while i < n and tag[i] == " ":
            i += 1
        if i >= n:
            break

        start = i
        while i < n and tag[i] > " " and tag[i] != ":" and tag[i] != '"' and tag[i] != "\x7f":
            i += 1
        if i == start or i + 1 >= n or tag[i] != ":" or tag[i + 1] != '"':
            raise ExtractionError("malformed tag: expected key:\"value\"", tag)
        key = tag[start:i]

        i += 2
        chars = []
        while i < n and tag[i] != '"':
            char = tag[i]
            if char == "\\":
                i += 1
                if i >= n:
                    break
                if tag[i] not in _TAG_ESCAPES:
                    raise ExtractionError(f"malformed tag: unknown escape '\\{tag[i]}' for key '{key}'", tag)
                char = _TAG_ESCAPES[tag[i]]
            chars.append(char)
            i += 1
        if i >= n:
            raise ExtractionError(f"malformed tag: unterminated value for key '{key}'", tag)
        i += 1

        result.setdefault(key, "".join(chars))
    return result


def extract_field_annotation(fld: FieldDecl) -> FieldAnnotation:
    """
    Extract the annotation of a field.

    `example` is left unset; callers read it with parse_example.

    Args:
        fld: Field declaration with its raw tag and documentation

    Returns:
        FieldAnnotation; `ignored` is set when the field must be skipped

    Raises:
        ExtractionError: On malformed tags
    """
    annotation = FieldAnnotation(name=fld.name)
    tags = parse_struct_tag(fld.tag.strip()) if fld.tag.strip() else {}

    json_tag = tags.get("json")
    if json_tag is not None:
        name, *options = json_tag.split(",")
        if name == "-" and not options:
            annotation.ignored = True
            return annotation
        if name:
            annotation.name = name
            annotation.has_name_tag = True
        annotation.nullable = "omitempty" in options
        annotation.as_string = "string" in options

    _apply_validation(annotation, tags.get("validate", ""))

    annotation.description = tags.get(DESCRIPTION_TAG, "")

    jsonapi_tag = tags.get("jsonapi")
    if jsonapi_tag is not None:
        _apply_resource_role(annotation, jsonapi_tag, fld.type)

    return annotation


def _apply_validation(annotation: FieldAnnotation, validate: str) -> None:
    tokens = [t.strip() for t in validate.split(",")] if validate else []
    # "-" disables validation for the field
    if tokens and tokens[0] == "-":
        return
    for token in tokens:
        if token == "required":
            annotation.required = True
            continue
        match = _ENUM_TOKEN.match(token)
        if match:
            annotation.enum = match.group(1).split()


def _apply_resource_role(annotation: FieldAnnotation, value: str, descriptor: TypeDescriptor | None) -> None:
    role, *args = value.split(",")
    try:
        annotation.role = ResourceRole(role)
    except ValueError:
        raise ExtractionError(f"unknown jsonapi role '{role}'", value) from None
    if annotation.role is ResourceRole.NONE:
        raise ExtractionError(f"unknown jsonapi role '{role}'", value)

    annotation.role_argument = args[0] if args else ""
    if annotation.role is ResourceRole.ATTRIBUTE:
        annotation.nullable = "omitempty" in args[1:]
        if annotation.role_argument:
            annotation.name = annotation.role_argument
    elif annotation.role is ResourceRole.RELATION:
        annotation.is_collection = isinstance(strip_pointers(descriptor), Array)
        if annotation.role_argument:
            annotation.name = annotation.role_argument


def strip_pointers(descriptor: TypeDescriptor | None) -> TypeDescriptor | None:
    while isinstance(descriptor, Pointer):
        descriptor = descriptor.elem
    return descriptor


def parse_schema_directive(doc: str) -> SchemaDirective | None:
    """Find the @openapi:schema directive in declaration documentation."""
    match = _SCHEMA_DIRECTIVE.search(doc)
    if not match:
        return None
    return SchemaDirective(custom_name=match.group(1) or "")


def parse_example(doc: str, descriptor: TypeDescriptor | None) -> Any:
    """
    Find an @openapi:example directive and convert its value.

    The value is converted according to the identifier type of the
    documented element; any other type keeps the raw string.

    Raises:
        ExtractionError: If the value does not match a numeric type
    """
    match = _EXAMPLE_DIRECTIVE.search(doc)
    if not match:
        return None
    return convert_example(match.group(1), descriptor)


def convert_example(example: str, descriptor: TypeDescriptor | None) -> Any:
    if not isinstance(descriptor, Ident):
        return example

    name = descriptor.name
    try:
        if name in _SIGNED_INTS:
            return int(example, 10)
        if name in _UNSIGNED_INTS:
            value = int(example, 10)
            if value < 0:
                raise ValueError(f"{value} is negative")
            return value
        if name in _FLOATS:
            return float(example)
    except ValueError as e:
        kind = "uint" if name in _UNSIGNED_INTS else "int" if name in _SIGNED_INTS else "float"
        raise ExtractionError(f"could not parse {kind}: {e}", example) from e
    return example
