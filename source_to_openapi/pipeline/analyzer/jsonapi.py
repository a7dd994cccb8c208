"""
JSON:API envelope generation.

A declaration whose fields carry `jsonapi` tags describes a linked resource.
Instead of a single object schema it yields eight envelope schemas (the
resource document, its collection, identifiers, data, attributes and
relationships). Relations between resources are recorded as edges; once
every file has been processed, close_includes() declares on each resource
document the resources that may be side-loaded with it.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ..declarations.nodes import Array, FieldDecl, Pointer, Struct, TypeDescriptor
from ..errors import Diagnostics, DiagnosticKind, ExtractionError, ResolutionError, StructuralError
from .registry import SchemaRegistry
from .schema_nodes import SchemaNode, ref_path
from .tags import FieldAnnotation, ResourceRole, extract_field_annotation, strip_pointers
from .type_resolver import TypeResolver

logger = logging.getLogger(__name__)

JSONAPI_TAG = 'jsonapi:"'
INCLUDES_PROPERTY = "includes"

# Suffixes of the eight envelope schemas, the resource document first
ENVELOPE_SUFFIXES = (
    "",
    "Identifier",
    "Collection",
    "IdentifierCollection",
    "Data",
    "IdentifierData",
    "Attributes",
    "Relationships",
)


@dataclass
class Resource:
    """A declaration recognised as a JSON:API resource."""

    real_name: str = ""
    custom_name: str = ""
    resource_type: str = ""  # Value of the "type" member, e.g. "users"
    relations: list[str] = field(default_factory=list)  # Referenced real names, in field order


def is_resource(struct: Struct) -> bool:
    """Whether any field of the composite carries a jsonapi tag."""
    return any(JSONAPI_TAG in fld.tag for fld in struct.fields)


def transitive_closure(edges: Mapping[str, Iterable[str]], root: str) -> list[str]:
    """
    Names reachable from root through at least one edge, sorted.

    The root itself is part of the result only when a cycle leads back to it.
    """
    seen: set[str] = set()
    queue = deque(edges.get(root, ()))
    while queue:
        name = queue.popleft()
        if name in seen:
            continue
        seen.add(name)
        queue.extend(edges.get(name, ()))
    return sorted(seen)


class EnvelopeGenerator:
    """Builds envelope schemas for JSON:API resources."""

    def __init__(self, resolver: TypeResolver, registry: SchemaRegistry, diagnostics: Diagnostics):
        self.resolver = resolver
        self.registry = registry
        self.diagnostics = diagnostics
        self.resources: dict[str, Resource] = {}

    @property
    def edges(self) -> dict[str, list[str]]:
        """Relation edges: resource real name -> referenced real names."""
        return {name: resource.relations for name, resource in self.resources.items() if resource.relations}

    def generate(self, real_name: str, struct: Struct, custom_name: str = "") -> Resource:
        """
        Register the envelope schemas of a resource.

        Args:
            real_name: Declared name of the resource
            struct: Its composite descriptor
            custom_name: Optional published name

        Returns:
            The recorded Resource

        Raises:
            StructuralError: If fields lack a role, or the primary field is
                missing, duplicated, not named id or has no resource type
        """
        fields: list[tuple[str, FieldDecl, FieldAnnotation]] = []
        missing: list[str] = []
        for fld in struct.fields:
            if not fld.is_embedded and not fld.exported:
                continue
            label = fld.name or "<embedded>"
            try:
                annotation = extract_field_annotation(fld)
            except ExtractionError as e:
                self.diagnostics.from_exception(DiagnosticKind.EXTRACTION, e, f"can't parse the tag of field {real_name}.{label}")
                continue
            if annotation.ignored:
                continue
            if annotation.role is ResourceRole.NONE:
                missing.append(label)
                continue
            fields.append((label, fld, annotation))

        if missing:
            raise StructuralError(f"resource {real_name} has missing fields: every field needs a jsonapi tag", ", ".join(missing))

        primaries = [(label, annotation) for label, _, annotation in fields if annotation.role is ResourceRole.PRIMARY]
        if len(primaries) != 1:
            raise StructuralError(f"resource {real_name} needs exactly one primary field, found {len(primaries)}")
        primary_label, primary = primaries[0]
        if primary_label.lower() != "id":
            raise StructuralError(f"primary field of resource {real_name} must be named id", primary_label)
        if not primary.role_argument:
            raise StructuralError(f"primary field of resource {real_name} has no resource type")

        resource = Resource(real_name=real_name, custom_name=custom_name, resource_type=primary.role_argument)
        attributes = SchemaNode(type="object")
        relationships = SchemaNode(type="object")

        for label, fld, annotation in fields:
            if annotation.role is ResourceRole.ATTRIBUTE:
                node = self._resolve_attribute(real_name, label, fld, annotation)
                if node is None:
                    continue
                if annotation.required:
                    attributes.required.append(annotation.name)
                attributes.properties[annotation.name] = node
            elif annotation.role is ResourceRole.RELATION:
                target = self._relation_target(real_name, label, fld.type)
                if target not in resource.relations:
                    resource.relations.append(target)
                relationships.properties[annotation.name] = self._relationship(target, annotation, fld.type)

        self._register_envelopes(resource, attributes, relationships)
        self.resources[real_name] = resource
        logger.info("Parsing JSON:API resource %s (%s)", real_name, resource.resource_type)
        return resource

    def _resolve_attribute(
        self,
        owner: str,
        label: str,
        fld: FieldDecl,
        annotation: FieldAnnotation,
    ) -> SchemaNode | None:
        try:
            node = self.resolver.resolve(fld.type)
        except ResolutionError as e:
            self.diagnostics.from_exception(DiagnosticKind.RESOLUTION, e, f"can't parse the type of field {owner}.{label}")
            return None
        try:
            self.resolver.apply_annotation(fld, annotation, node)
        except ExtractionError as e:
            self.diagnostics.from_exception(DiagnosticKind.EXTRACTION, e, f"can't parse the tag of field {owner}.{label}")
            return None
        return node

    def _relation_target(self, owner: str, label: str, descriptor: TypeDescriptor | None) -> str:
        element = strip_pointers(descriptor)
        if isinstance(element, Array):
            element = strip_pointers(element.elem)
        try:
            node = self.resolver.resolve(element)
        except ResolutionError as e:
            raise StructuralError(f"relation {owner}.{label} has an unsupported type", e.message) from e
        if not node.ref:
            raise StructuralError(f"relation {owner}.{label} must reference a resource")
        return node.real_name

    def _relationship(self, target: str, annotation: FieldAnnotation, descriptor: TypeDescriptor | None) -> SchemaNode:
        if annotation.is_collection:
            return SchemaNode(ref=ref_path(f"{target}IdentifierCollection"), real_name=f"{target}IdentifierCollection")
        identifier = SchemaNode(ref=ref_path(f"{target}Identifier"), real_name=f"{target}Identifier")
        return SchemaNode(
            type="object",
            nullable=isinstance(descriptor, Pointer) or annotation.nullable,
            properties={"data": identifier},
            required=["data"],
        )

    def _register_envelopes(self, resource: Resource, attributes: SchemaNode, relationships: SchemaNode) -> None:
        name = resource.real_name

        def ref(suffix: str) -> SchemaNode:
            return SchemaNode(ref=ref_path(f"{name}{suffix}"), real_name=f"{name}{suffix}")

        def document(data: SchemaNode) -> SchemaNode:
            return SchemaNode(type="object", properties={"data": data}, required=["data"])

        identifier = SchemaNode(
            type="object",
            properties={
                "id": SchemaNode(type="string"),
                "type": SchemaNode(type="string", enum=[resource.resource_type]),
            },
            required=["id", "type"],
        )
        data = SchemaNode(
            type="object",
            properties={
                "id": SchemaNode(type="string"),
                "type": SchemaNode(type="string", enum=[resource.resource_type]),
                "attributes": ref("Attributes"),
                "relationships": ref("Relationships"),
            },
            required=["id", "type"],
        )

        envelopes = {
            "": document(ref("Data")),
            "Identifier": identifier,
            "Collection": document(SchemaNode(type="array", items=ref("Data"))),
            "IdentifierCollection": document(SchemaNode(type="array", items=ref("Identifier"))),
            "Data": data,
            "IdentifierData": document(ref("Identifier")),
            "Attributes": attributes,
            "Relationships": relationships,
        }
        for suffix in ENVELOPE_SUFFIXES:
            schema = envelopes[suffix]
            if resource.custom_name and resource.custom_name != name:
                schema.custom_name = f"{resource.custom_name}{suffix}"
            self.registry.register(f"{name}{suffix}", schema)

    def close_includes(self) -> None:
        """
        Add the includes property to every resource document with relations.

        Members are the resources transitively reachable through relations,
        sorted by name. Relations to declarations that are not resources are
        reported once and left out.
        """
        edges = self.edges
        unknown = sorted({target for targets in edges.values() for target in targets if target not in self.resources})
        for target in unknown:
            self.diagnostics.error(DiagnosticKind.STRUCTURAL, f"{target} is the target of a relation but is not a JSON:API resource")

        for name in edges:
            reachable = [target for target in transitive_closure(edges, name) if target in self.resources]
            if not reachable:
                continue

            document = self.registry.get(name)
            if not isinstance(document, SchemaNode):
                continue
            document.properties[INCLUDES_PROPERTY] = SchemaNode(
                type="array",
                nullable=True,
                items=SchemaNode(any_of=[SchemaNode(ref=ref_path(f"{target}Data"), real_name=f"{target}Data") for target in reachable]),
            )
            logger.info("Resource %s includes %s", name, ", ".join(reachable))
