"""
Path and info block extraction.

Documentation comments may embed YAML payloads introduced by a marker line:

    @openapi:path
    /pets:
        get:
            operationId: ListPets

    @openapi:info
    version: 1.0.0
    title: Pet store

Path blocks are merged into the document verb by verb, info blocks set the
document's info section with first-wins semantics.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from ..config import CompilerConfig
from ..errors import Diagnostics, DiagnosticKind, StructuralError
from .model import Document, Operation

logger = logging.getLogger(__name__)

_PATH_BLOCK = re.compile(r"@openapi:path\n([^@]*)$")
_INFO_BLOCK = re.compile(r"@openapi:info\n([^@]*)$")
_IMPORT = re.compile(r"import\(([^\)]+)\)")

INFO_FIELDS = ("version", "title", "description")


class BlockExtractor:
    """Folds path and info blocks into a document."""

    def __init__(self, document: Document, config: CompilerConfig, diagnostics: Diagnostics):
        self.document = document
        self.config = config
        self.diagnostics = diagnostics

    def extract_paths(self, comments: list[str]) -> None:
        """
        Merge every path block of the comments into the document.

        A verb that already exists for a URL is reported and dropped; the
        first occurrence wins.

        Raises:
            StructuralError: In strict mode, if a block cannot be decoded
        """
        for comment in comments:
            payload = self._decode_block(_PATH_BLOCK, comment, "path")
            if payload is None:
                continue

            for url, verbs in payload.items():
                url = str(url)
                if not isinstance(verbs, dict):
                    self._decode_error("path", f"operations of {url} must be a mapping", str(verbs))
                    continue

                added = []
                for verb, raw in verbs.items():
                    verb = str(verb)
                    if self.document.has_operation(url, verb):
                        self.diagnostics.error(
                            DiagnosticKind.CONFLICT,
                            "verb for this path already exists",
                            f"url: {url}, verb: {verb}",
                        )
                        continue
                    try:
                        operation = Operation.from_dict(raw)
                    except ValueError as e:
                        self._decode_error("path", f"invalid operation {verb} {url}: {e}", str(raw))
                        continue
                    self.document.add_operation(url, verb, operation)
                    added.append(verb)

                logger.info("Parsing path %s %s", url, added)

    def extract_infos(self, comments: list[str]) -> None:
        """
        Fold every info block of the comments into the document's info.

        version, title and description are set once: a later block with a
        different value is ignored with a warning. A description of the form
        import(<path>) is replaced by the content of the file.

        Raises:
            StructuralError: In strict mode, if a block cannot be decoded
        """
        info = self.document.info
        for comment in comments:
            payload = self._decode_block(_INFO_BLOCK, comment, "info")
            if payload is None:
                continue

            for name in INFO_FIELDS:
                value = payload.get(name)
                if value is None or value == "":
                    continue
                value = str(value)
                if name == "description":
                    value = self._import_description(value)
                    if value is None:
                        continue

                current = getattr(info, name)
                if current and current != value:
                    self.diagnostics.warning(
                        DiagnosticKind.CONFLICT,
                        f"{name} already exists and is different",
                        f"{current!r} kept, {value!r} ignored",
                    )
                    continue
                logger.info("Parsing info %s", name)
                setattr(info, name, value)

            if isinstance(payload.get("x-logo"), dict):
                info.x_logo = dict(payload["x-logo"])
            if isinstance(payload.get("contact"), dict):
                info.contact = dict(payload["contact"])
            if isinstance(payload.get("license"), dict):
                info.license = dict(payload["license"])

    def _import_description(self, description: str) -> str | None:
        match = _IMPORT.search(description)
        if not match:
            return description

        path = Path(match.group(1).strip())
        if not path.is_absolute() and self.config.import_base_dir:
            path = Path(self.config.import_base_dir) / path
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            self.diagnostics.error(DiagnosticKind.IMPORT, f"could not import file: {e}", str(path))
            return None
        logger.info("Parsing info description from file %s", path)
        return content

    def _decode_block(self, pattern: re.Pattern, comment: str, kind: str) -> dict[str, Any] | None:
        match = pattern.search(comment)
        if not match:
            return None

        content = match.group(1).replace("\t", "  ")
        try:
            payload = yaml.safe_load(content)
        except yaml.YAMLError as e:
            self._decode_error(kind, f"unable to unmarshal {kind}: {e}", content)
            return None
        if payload is None:
            return None
        if not isinstance(payload, dict):
            self._decode_error(kind, f"{kind} block must be a mapping", content)
            return None
        return payload

    def _decode_error(self, kind: str, message: str, content: str) -> None:
        if self.config.strict:
            raise StructuralError(message, content)
        self.diagnostics.error(DiagnosticKind.DECODE, message, content)
