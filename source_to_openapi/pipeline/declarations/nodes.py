"""
Node definitions for parsed source declarations.

These nodes are what the external source parser hands over: the shape of
each declared type, its fields with their raw tag strings, and the
documentation text attached to them. The compiler only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TypeDescriptor:
    """Base class for all type descriptors."""


@dataclass
class Ident(TypeDescriptor):
    """A bare identifier: a primitive (int64, string) or a declared type name."""

    name: str = ""


@dataclass
class Pointer(TypeDescriptor):
    """An optional value of the element type."""

    elem: TypeDescriptor | None = None


@dataclass
class Array(TypeDescriptor):
    """A sequence of the element type."""

    elem: TypeDescriptor | None = None


@dataclass
class Map(TypeDescriptor):
    """A mapping from key type to value type."""

    key: TypeDescriptor | None = None
    value: TypeDescriptor | None = None


@dataclass
class Selector(TypeDescriptor):
    """A qualified reference such as time.Time.

    `target` is the qualifier (usually an Ident naming a package), `name`
    is the selected identifier.
    """

    target: TypeDescriptor | None = None
    name: str = ""


@dataclass
class FieldDecl:
    """A field of a composite type."""

    names: list[str] = field(default_factory=list)  # Empty for embedded fields
    type: TypeDescriptor | None = None
    tag: str = ""  # Raw tag string, e.g. 'json:"name,omitempty" validate:"required"'
    doc: str = ""
    exported: bool = True

    @property
    def is_embedded(self) -> bool:
        return not self.names

    @property
    def name(self) -> str:
        """Declared name of the field (empty for embedded fields)."""
        return self.names[0] if self.names else ""


@dataclass
class Struct(TypeDescriptor):
    """A composite type with fields."""

    fields: list[FieldDecl] = field(default_factory=list)


@dataclass
class Interface(TypeDescriptor):
    """A dynamic value of any type."""


@dataclass
class Unsupported(TypeDescriptor):
    """Any other shape (function, channel...)."""

    kind: str = ""


@dataclass
class Declaration:
    """A named type declaration with its documentation."""

    name: str = ""
    type: TypeDescriptor | None = None
    doc: str = ""


@dataclass
class SourceFile:
    """Everything the parser extracted from one source file."""

    path: str = ""
    declarations: list[Declaration] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)  # Raw comment blocks, in file order
