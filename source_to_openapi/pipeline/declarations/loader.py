"""
Loader for declaration dumps.

A declaration dump is the JSON (or YAML) rendition of what the source parser
extracted from one file:

    {
        "path": "models/user.go",
        "comments": ["@openapi:info\\nversion: 1.0.0\\n"],
        "declarations": [
            {
                "name": "User",
                "doc": "User struct\\n@openapi:schema\\n",
                "type": {"kind": "struct", "fields": [
                    {"names": ["Name"], "type": "string", "tag": "json:\\"name\\""}
                ]}
            }
        ]
    }

Type descriptors are mappings with a "kind" key; a bare string is shorthand
for an identifier.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..errors import DeclarationLoadError
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

DUMP_SUFFIXES = (".json", ".yaml", ".yml")


class DeclarationLoader:
    """Builds SourceFile nodes from declaration dumps."""

    def parse(self, data: dict[str, Any], default_path: str = "") -> SourceFile:
        """
        Parse one declaration dump.

        Args:
            data: The decoded dump
            default_path: Path used when the dump does not name its source file

        Returns:
            SourceFile with declarations and comment blocks
        """
        if not isinstance(data, dict):
            raise DeclarationLoadError("Declaration dump must be a mapping", default_path)

        comments = data.get("comments") or []
        if not isinstance(comments, list) or not all(isinstance(c, str) for c in comments):
            raise DeclarationLoadError("'comments' must be a list of strings", default_path)

        declarations = []
        for i, raw in enumerate(data.get("declarations") or []):
            declarations.append(self._parse_declaration(raw, f"declarations[{i}]"))

        return SourceFile(
            path=str(data.get("path") or default_path),
            declarations=declarations,
            comments=list(comments),
        )

    def load_file(self, path: Path | str) -> SourceFile:
        """Load a dump from a .json, .yaml or .yml file."""
        path = Path(path)
        text = path.read_text(encoding="utf-8")
        try:
            if path.suffix == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise DeclarationLoadError(f"Failed to decode declaration dump: {e}", str(path)) from e
        return self.parse(data, default_path=str(path))

    def load_paths(self, paths: list[Path | str]) -> list[SourceFile]:
        """Load dumps from files and directories (searched recursively)."""
        files = []
        for p in paths:
            p = Path(p)
            if p.is_dir():
                for candidate in sorted(p.rglob("*")):
                    if candidate.is_file() and candidate.suffix in DUMP_SUFFIXES:
                        files.append(self.load_file(candidate))
            else:
                files.append(self.load_file(p))
        return files

    def _parse_declaration(self, raw: Any, where: str) -> Declaration:
        if not isinstance(raw, dict) or "name" not in raw:
            raise DeclarationLoadError("Declaration needs a 'name'", where)
        return Declaration(
            name=str(raw["name"]),
            type=self.parse_type(raw.get("type"), f"{where}.type"),
            doc=raw.get("doc") or "",
        )

    def parse_type(self, raw: Any, where: str = "type") -> TypeDescriptor:
        """Parse a type descriptor."""
        if isinstance(raw, str):
            return Ident(name=raw)
        if not isinstance(raw, dict) or "kind" not in raw:
            raise DeclarationLoadError("Type descriptor needs a 'kind'", where)

        kind = raw["kind"]
        if kind == "ident":
            return Ident(name=raw.get("name", ""))
        if kind == "pointer":
            return Pointer(elem=self.parse_type(raw.get("elem"), f"{where}.elem"))
        if kind == "array":
            return Array(elem=self.parse_type(raw.get("elem"), f"{where}.elem"))
        if kind == "map":
            return Map(
                key=self.parse_type(raw.get("key"), f"{where}.key"),
                value=self.parse_type(raw.get("value"), f"{where}.value"),
            )
        if kind == "selector":
            return Selector(
                target=self.parse_type(raw.get("target"), f"{where}.target"),
                name=raw.get("name", ""),
            )
        if kind == "struct":
            return Struct(fields=[self._parse_field(f, f"{where}.fields[{i}]") for i, f in enumerate(raw.get("fields") or [])])
        if kind == "interface":
            return Interface()
        return Unsupported(kind=str(kind))

    def _parse_field(self, raw: Any, where: str) -> FieldDecl:
        if not isinstance(raw, dict):
            raise DeclarationLoadError("Field must be a mapping", where)
        names = raw.get("names") or []
        if isinstance(names, str):
            names = [names]
        return FieldDecl(
            names=[str(n) for n in names],
            type=self.parse_type(raw.get("type"), f"{where}.type"),
            tag=raw.get("tag") or "",
            doc=raw.get("doc") or "",
            exported=raw.get("exported", True),
        )
