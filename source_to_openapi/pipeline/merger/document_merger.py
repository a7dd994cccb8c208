"""
Merging of independently produced documents.

Unlike info blocks, nothing is silently overridden here: a path verb or a
schema defined differently by two documents is a conflict.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ..analyzer.equality import structurally_equal, values_equal
from ..analyzer.schema_nodes import Schema
from ..document.model import Document, Operation, load_document
from ..errors import MergeConflictError

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".yaml", ".yml")


class DocumentMerger:
    """Merges auxiliary documents into a main document."""

    def merge(self, main: Document, auxiliaries: Iterable[tuple[str, Document]]) -> Document:
        """
        Merge auxiliary documents into main, in order.

        Args:
            main: The document receiving paths and schemas (mutated)
            auxiliaries: (source name, document) pairs

        Returns:
            The main document

        Raises:
            MergeConflictError: If a path verb or a schema already exists in
                main with a different content
        """
        for source, document in auxiliaries:
            self.merge_one(main, document, source)
        main.schemas = dict(sorted(main.schemas.items()))
        return main

    def merge_one(self, main: Document, other: Document, source: str = "") -> None:
        """
        Merge a single document into main.

        Conflicts are checked before anything is added, so a failed merge
        leaves main untouched.
        """
        operations: list[tuple[str, str, Operation]] = []
        for url, verbs in other.paths.items():
            for verb, operation in verbs.items():
                existing = main.paths.get(url, {}).get(verb)
                if existing is None:
                    operations.append((url, verb, operation))
                elif not values_equal(existing.to_dict(), operation.to_dict()):
                    raise MergeConflictError(
                        "verb for this path already exists and is different",
                        f"url: {url}, verb: {verb}, file: {source}",
                    )

        schemas: list[tuple[str, Schema]] = []
        for name, schema in other.schemas.items():
            existing = main.schemas.get(name)
            if existing is None:
                schemas.append((name, schema))
            elif not structurally_equal(existing, schema):
                raise MergeConflictError(
                    f"schema {name} already exists and is different",
                    f"schema: {name}, file: {source}",
                )

        for url, verb, operation in operations:
            logger.info("Adding path %s %s from %s", verb, url, source)
            main.add_operation(url, verb, operation)
        for name, schema in schemas:
            logger.info("Adding schema %s from %s", name, source)
            main.schemas[name] = schema


def load_documents(directory: Path | str) -> list[tuple[str, Document]]:
    """Load every YAML document of a directory, sorted by file name."""
    documents = []
    for path in sorted(Path(directory).iterdir()):
        if not path.is_file():
            continue
        if path.suffix not in DOCUMENT_SUFFIXES:
            logger.warning("Skipping %s: not a YAML file", path.name)
            continue
        documents.append((path.name, load_document(path.read_text(encoding="utf-8"))))
    return documents
