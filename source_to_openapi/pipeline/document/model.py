"""
API-description document model.

The document is built incrementally over a whole source tree: info and
paths come from documentation blocks, component schemas from the registry
once it is finalized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

from ..analyzer.schema_nodes import Schema, schema_from_dict
from ..errors import DocumentLoadError

# (attribute, document key) pairs of an operation, in output order
OPERATION_FIELDS = (
    ("summary", "summary"),
    ("description", "description"),
    ("operation_id", "operationId"),
    ("responses", "responses"),
    ("tags", "tags"),
    ("parameters", "parameters"),
    ("request_body", "requestBody"),
    ("security", "security"),
    ("headers", "headers"),
    ("deprecated", "deprecated"),
    ("servers", "servers"),
    ("external_docs", "externalDocs"),
)


@dataclass
class Operation:
    """One verb of a path.

    Keys that are not modelled are kept in `extensions` and written back.
    """

    summary: str = ""
    description: str = ""
    operation_id: str = ""
    responses: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    parameters: list[dict[str, Any]] = field(default_factory=list)
    request_body: dict[str, Any] = field(default_factory=dict)
    security: list[dict[str, Any]] = field(default_factory=list)
    headers: dict[str, Any] = field(default_factory=dict)
    deprecated: bool = False
    servers: list[dict[str, Any]] = field(default_factory=list)
    external_docs: dict[str, Any] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Operation:
        """Create an operation from its decoded YAML."""
        if not isinstance(d, dict):
            raise ValueError(f"operation must be a mapping, got {type(d).__name__}")
        op = Operation()
        known = {key for _, key in OPERATION_FIELDS}
        for attr, key in OPERATION_FIELDS:
            if key in d and d[key] is not None:
                setattr(op, attr, d[key])
        op.extensions = {k: v for k, v in d.items() if k not in known}
        return op

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        for attr, key in OPERATION_FIELDS:
            value = getattr(self, attr)
            if value or key == "responses":
                d[key] = value
        d.update(self.extensions)
        return d


@dataclass
class Info:
    """The info section."""

    version: str = ""
    title: str = ""
    description: str = ""
    x_logo: dict[str, str] = field(default_factory=dict)
    contact: dict[str, str] = field(default_factory=dict)
    license: dict[str, str] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Info:
        return Info(
            version=str(d.get("version") or ""),
            title=str(d.get("title") or ""),
            description=str(d.get("description") or ""),
            x_logo=dict(d.get("x-logo") or {}),
            contact=dict(d.get("contact") or {}),
            license=dict(d.get("license") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "version": self.version,
            "title": self.title,
            "description": self.description,
        }
        if self.x_logo:
            d["x-logo"] = self.x_logo
        if self.contact:
            d["contact"] = self.contact
        if self.license:
            d["license"] = self.license
        return d


@dataclass
class Document:
    """An API-description document."""

    openapi: str = "3.0.0"
    info: Info = field(default_factory=Info)
    servers: list[dict[str, Any]] = field(default_factory=list)
    paths: dict[str, dict[str, Operation]] = field(default_factory=dict)
    tags: list[dict[str, Any]] = field(default_factory=list)
    schemas: dict[str, Schema] = field(default_factory=dict)
    security_schemes: dict[str, Any] = field(default_factory=dict)
    security: list[dict[str, Any]] = field(default_factory=list)
    x_tag_groups: list[Any] = field(default_factory=list)

    def has_operation(self, url: str, verb: str) -> bool:
        return verb in self.paths.get(url, {})

    def add_operation(self, url: str, verb: str, operation: Operation) -> None:
        self.paths.setdefault(url, {})[verb] = operation

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the API-description layout."""
        d: dict[str, Any] = {
            "openapi": self.openapi,
            "info": self.info.to_dict(),
            "servers": list(self.servers),
            "paths": {url: {verb: op.to_dict() for verb, op in verbs.items()} for url, verbs in self.paths.items()},
        }
        if self.tags:
            d["tags"] = list(self.tags)
        components: dict[str, Any] = {"schemas": {name: schema.to_dict() for name, schema in self.schemas.items()}}
        if self.security_schemes:
            components["securitySchemes"] = self.security_schemes
        d["components"] = components
        if self.security:
            d["security"] = list(self.security)
        if self.x_tag_groups:
            d["x-tagGroups"] = list(self.x_tag_groups)
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Document:
        """Load a document, e.g. one written by an earlier run."""
        if not isinstance(d, dict):
            raise DocumentLoadError("Document root must be a mapping")
        components = d.get("components") or {}
        doc = Document(
            openapi=str(d.get("openapi") or "3.0.0"),
            info=Info.from_dict(d.get("info") or {}),
            servers=list(d.get("servers") or []),
            tags=list(d.get("tags") or []),
            security_schemes=dict(components.get("securitySchemes") or {}),
            security=list(d.get("security") or []),
            x_tag_groups=list(d.get("x-tagGroups") or []),
        )
        for url, verbs in (d.get("paths") or {}).items():
            for verb, op in (verbs or {}).items():
                try:
                    doc.add_operation(url, verb, Operation.from_dict(op))
                except ValueError as e:
                    raise DocumentLoadError(f"Invalid operation {verb} {url}: {e}") from e
        for name, schema in (components.get("schemas") or {}).items():
            doc.schemas[name] = schema_from_dict(schema or {})
        return doc


def dump_document(document: Document) -> str:
    """Render a document as YAML."""
    return yaml.safe_dump(document.to_dict(), sort_keys=False, allow_unicode=True, default_flow_style=False)


def load_document(text: str) -> Document:
    """Parse a YAML document."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentLoadError(f"Failed to decode document: {e}") from e
    return Document.from_dict(data or {})
