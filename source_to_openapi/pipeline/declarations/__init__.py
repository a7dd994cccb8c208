"""
Declarations module.

Contains the node definitions for parsed source declarations and the
loader for declaration dumps.
"""

from __future__ import annotations

from .loader import DeclarationLoader
from .nodes import (
    Array,
    Declaration,
    FieldDecl,
    Ident,
    Interface,
    Map,
    Pointer,
    Selector,
    SourceFile,
    Struct,
    TypeDescriptor,
    Unsupported,
)

__all__ = [
    "DeclarationLoader",
    "TypeDescriptor",
    "Ident",
    "Pointer",
    "Array",
    "Map",
    "Selector",
    "Struct",
    "Interface",
    "Unsupported",
    "FieldDecl",
    "Declaration",
    "SourceFile",
]
