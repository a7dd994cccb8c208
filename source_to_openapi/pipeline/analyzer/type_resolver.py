"""
Type resolver that turns type descriptors into schema nodes.

Resolution is recursive over the descriptor tree. Problems with a single
field are recorded as diagnostics and the field is skipped, so that the
rest of the declaration still resolves.
"""

from __future__ import annotations

import logging

from ..config import CompilerConfig
from ..declarations.nodes import (
    Array,
    FieldDecl,
    Ident,
    Interface,
    Map,
    Pointer,
    Selector,
    Struct,
    TypeDescriptor,
)
from ..errors import Diagnostics, DiagnosticKind, ExtractionError, ResolutionError
from .schema_nodes import ANY_VALUE, ComposedSchema, Schema, SchemaNode, ref_path
from .tags import FieldAnnotation, extract_field_annotation, parse_example

logger = logging.getLogger(__name__)

# https://swagger.io/specification/#dataTypes
PRIMITIVE_TYPES: dict[str, tuple[str, str]] = {
    "string": ("string", ""),
    "bson": ("string", ""),
    "int": ("integer", ""),
    "int8": ("integer", "int8"),
    "int16": ("integer", "int16"),
    "int32": ("integer", "int32"),
    "int64": ("integer", "int64"),
    "uint": ("integer", ""),
    "uint8": ("integer", "uint8"),
    "uint16": ("integer", "uint16"),
    "uint32": ("integer", "uint32"),
    "uint64": ("integer", "uint64"),
    "float32": ("number", "float"),
    "float64": ("number", ""),
    "bool": ("boolean", ""),
    "time": ("string", "date-time"),
    "byte": ("string", "binary"),
    "json": ("string", "binary"),
}

MAP_KEY_TYPES = {"string", "integer"}
STRING_COERCIBLE_TYPES = {"string", "integer", "number", "boolean"}


class TypeResolver:
    """Resolves type descriptors to schema nodes."""

    def __init__(self, config: CompilerConfig, diagnostics: Diagnostics):
        """
        Initialize the resolver.

        Args:
            config: Compiler configuration (external types table)
            diagnostics: Collector for per-field problems
        """
        self.config = config
        self.diagnostics = diagnostics

    def resolve(self, descriptor: TypeDescriptor | None, disambiguator: str | None = None) -> SchemaNode:
        """
        Resolve a descriptor to a schema node.

        Args:
            descriptor: The type descriptor
            disambiguator: Selected identifier of an enclosing Selector, used to
                name references to types declared elsewhere

        Returns:
            SchemaNode for the descriptor

        Raises:
            ResolutionError: If the descriptor cannot be expressed as a schema
        """
        if isinstance(descriptor, Ident):
            return self._resolve_ident(descriptor, disambiguator)

        if isinstance(descriptor, Pointer):
            node = self.resolve(descriptor.elem, disambiguator)
            # References keep their $ref string, nullable sits next to it
            node.nullable = True
            return node

        if isinstance(descriptor, Array):
            return self._resolve_array(descriptor, disambiguator)

        if isinstance(descriptor, Map):
            return self._resolve_map(descriptor, disambiguator)

        if isinstance(descriptor, Selector):
            if descriptor.target is None:
                raise ResolutionError("selector without target", descriptor.name)
            return self.resolve(descriptor.target, descriptor.name)

        if isinstance(descriptor, Struct):
            return self.resolve_struct(descriptor, composed=False)

        if isinstance(descriptor, Interface):
            return SchemaNode(ref=ref_path(ANY_VALUE), real_name=ANY_VALUE)

        raise ResolutionError(f"type {describe(descriptor)} is unsupported for a schema")

    def _resolve_ident(self, ident: Ident, disambiguator: str | None) -> SchemaNode:
        primitive = PRIMITIVE_TYPES.get(ident.name)
        if primitive:
            type_name, format_name = primitive
            return SchemaNode(type=type_name, format=format_name)

        if disambiguator:
            for key in (f"{ident.name}.{disambiguator}", disambiguator, ident.name):
                external = self.config.external_types.get(key)
                if external:
                    return SchemaNode(type=external.type, format=external.format)

        target = disambiguator or ident.name
        if not target:
            raise ResolutionError("identifier without a name")
        return SchemaNode(ref=ref_path(target), real_name=target)

    def _resolve_array(self, array: Array, disambiguator: str | None) -> SchemaNode:
        element = self.resolve(array.elem, disambiguator)

        # A list of bytes is a blob
        if element.type == "string" and element.format == "binary":
            return SchemaNode(type="string", format="binary")

        if element.ref:
            items = SchemaNode(ref=element.ref, real_name=element.real_name)
        elif element.type:
            items = SchemaNode(type=element.type, items=element.items, properties=element.properties)
        else:
            items = element
        return SchemaNode(type="array", items=items)

    def _resolve_map(self, mapping: Map, disambiguator: str | None) -> SchemaNode:
        try:
            key = self.resolve(mapping.key, disambiguator)
        except ResolutionError as e:
            raise ResolutionError(f"map key: {e.message}", describe(mapping)) from e
        if key.ref or key.type not in MAP_KEY_TYPES:
            raise ResolutionError("map keys can only be strings or integers", describe(mapping))

        if isinstance(mapping.value, Interface):
            value = SchemaNode()
        else:
            value = self.resolve(mapping.value, disambiguator)
        return SchemaNode(type="object", additional_properties=value)

    def resolve_struct(self, struct: Struct, owner: str = "", composed: bool = True) -> Schema:
        """
        Resolve a composite type.

        Named fields become properties; embedded fields without a
        serialization name are composition and go to an allOf list, followed
        by the object holding the named fields.

        Args:
            struct: The composite descriptor
            owner: Name of the declaration, for diagnostics
            composed: Return a ComposedSchema when there is composition
                (declaration level) instead of a SchemaNode with allOf (inline)

        Returns:
            SchemaNode, or ComposedSchema when composed and fields are embedded
        """
        obj = SchemaNode(type="object")
        embedded: list[SchemaNode] = []

        for fld in struct.fields:
            if not fld.is_embedded and not fld.exported:
                continue

            label = fld.name or describe(fld.type)
            if owner:
                label = f"{owner}.{label}"
            try:
                annotation, node = self.resolve_field(fld)
            except ExtractionError as e:
                self.diagnostics.from_exception(DiagnosticKind.EXTRACTION, e, f"can't parse the tag of field {label}")
                continue
            except ResolutionError as e:
                self.diagnostics.from_exception(DiagnosticKind.RESOLUTION, e, f"can't parse the type of field {label}")
                continue

            if node is None:
                continue

            if fld.is_embedded and not annotation.has_name_tag:
                embedded.append(node)
                continue

            if annotation.required:
                obj.required.append(annotation.name)
            obj.properties[annotation.name] = node

        if not embedded:
            return obj
        if composed:
            return ComposedSchema(all_of=[*embedded, obj])
        return SchemaNode(all_of=[*embedded, obj])

    def resolve_field(self, fld: FieldDecl) -> tuple[FieldAnnotation, SchemaNode | None]:
        """
        Extract the annotation of a field and resolve its type.

        Returns:
            The annotation and the field schema (None when the field is ignored)

        Raises:
            ExtractionError: Malformed tag or illegal string coercion
            ResolutionError: Unsupported field type
        """
        annotation = extract_field_annotation(fld)
        if annotation.ignored:
            return annotation, None

        node = self.resolve(fld.type)
        self.apply_annotation(fld, annotation, node)
        return annotation, node

    def apply_annotation(self, fld: FieldDecl, annotation: FieldAnnotation, node: SchemaNode) -> None:
        """
        Apply the tag options and the documented example of a field to its schema.

        An unparsable example is recorded as a diagnostic and left out.

        Raises:
            ExtractionError: Illegal string coercion
        """
        if annotation.as_string:
            if node.ref or node.type not in STRING_COERCIBLE_TYPES:
                raise ExtractionError(
                    "the string option only applies to string, integer, number and boolean fields",
                    fld.tag,
                )
            node.type = "string"
            node.format = ""

        if annotation.nullable:
            node.nullable = True
        if annotation.enum:
            node.enum = list(annotation.enum)
        if annotation.description:
            node.description = annotation.description

        try:
            annotation.example = parse_example(fld.doc, fld.type)
        except ExtractionError as e:
            self.diagnostics.from_exception(DiagnosticKind.EXTRACTION, e, f"can't parse the example of field {fld.name}")
        if annotation.example is not None:
            node.example = annotation.example


def describe(descriptor: TypeDescriptor | None) -> str:
    """Short human readable rendition of a descriptor, for messages."""
    if descriptor is None:
        return "<nil>"
    if isinstance(descriptor, Ident):
        return descriptor.name
    if isinstance(descriptor, Pointer):
        return f"*{describe(descriptor.elem)}"
    if isinstance(descriptor, Array):
        return f"[]{describe(descriptor.elem)}"
    if isinstance(descriptor, Map):
        return f"map[{describe(descriptor.key)}]{describe(descriptor.value)}"
    if isinstance(descriptor, Selector):
        return f"{describe(descriptor.target)}.{descriptor.name}"
    if isinstance(descriptor, Struct):
        return "struct{...}"
    if isinstance(descriptor, Interface):
        return "interface{}"
    return getattr(descriptor, "kind", "") or type(descriptor).__name__
