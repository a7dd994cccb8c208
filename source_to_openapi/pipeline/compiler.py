"""
Schema compiler - one compilation run over a source tree.

Each source file contributes, in order, its info blocks, its annotated
declarations and its path blocks. Once every file has been processed the
JSON:API includes are closed and the registry is finalized into the
document's component schemas.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import PurePath

from .analyzer.jsonapi import EnvelopeGenerator, is_resource
from .analyzer.registry import SchemaRegistry
from .analyzer.schema_nodes import SchemaNode
from .analyzer.tags import parse_example, parse_schema_directive
from .analyzer.type_resolver import TypeResolver
from .config import CompilerConfig
from .declarations.nodes import Declaration, SourceFile, Struct
from .document.blocks import BlockExtractor
from .document.model import Document
from .errors import (
    CompilationError,
    Diagnostics,
    DiagnosticKind,
    ExtractionError,
    ResolutionError,
    StructuralError,
)

logger = logging.getLogger(__name__)


def is_parsable_path(path: str, vendor_paths: Iterable[str] = ()) -> bool:
    """
    Whether a source file takes part in the run.

    Dot files are skipped, and so are vendored files unless their path
    contains one of the listed vendor paths.
    """
    if "vendor" in path and not any(vendor in path for vendor in vendor_paths):
        return False
    if PurePath(path).name.startswith("."):
        return False
    return True


class SchemaCompiler:
    """Compiles parsed source files into a document.

    A compiler instance holds the state of exactly one run.
    """

    def __init__(self, config: CompilerConfig | None = None):
        """
        Initialize the compiler.

        Args:
            config: Run configuration (strict mode, includes, vendor paths...)
        """
        self.config = config or CompilerConfig()
        self.diagnostics = Diagnostics()
        self.registry = SchemaRegistry()
        self.document = Document(openapi=self.config.openapi_version)
        self.resolver = TypeResolver(self.config, self.diagnostics)
        self.envelopes = EnvelopeGenerator(self.resolver, self.registry, self.diagnostics)
        self.blocks = BlockExtractor(self.document, self.config, self.diagnostics)
        self._includes_closed = False

    def compile(self, files: Iterable[SourceFile]) -> Document:
        """
        Run the whole compilation.

        Files are processed sorted by path so that first-wins policies do
        not depend on the order the files were discovered in.

        Returns:
            The finalized document

        Raises:
            CompilationError: In strict mode, on a structural error or if any
                error was recorded
            SchemaConflictError: If a schema name was declared twice with
                different content
        """
        for source in sorted(files, key=lambda f: f.path):
            if not is_parsable_path(source.path, self.config.vendor_paths):
                logger.debug("Skipping %s", source.path)
                continue
            self.add_file(source)
        return self.finalize()

    def add_file(self, source: SourceFile) -> None:
        """Process one source file.

        A structural error stops the processing of the file; in strict mode
        it stops the run.
        """
        self.diagnostics.current_source = source.path
        try:
            self.blocks.extract_infos(source.comments)
            for declaration in source.declarations:
                self.add_declaration(declaration)
            self.blocks.extract_paths(source.comments)
        except StructuralError as e:
            self.diagnostics.fatal(DiagnosticKind.STRUCTURAL, e.message, e.content)
            if self.config.strict:
                raise CompilationError(f"errors while generating the document: {e}", self.diagnostics.errors) from e
        finally:
            self.diagnostics.current_source = ""

    def add_declaration(self, declaration: Declaration) -> None:
        """Resolve and register an @openapi:schema declaration."""
        directive = parse_schema_directive(declaration.doc)
        if directive is None:
            return
        name = declaration.name
        custom_name = directive.custom_name if directive.custom_name != name else ""

        if isinstance(declaration.type, Struct) and is_resource(declaration.type):
            self.envelopes.generate(name, declaration.type, custom_name)
            return

        try:
            example = parse_example(declaration.doc, declaration.type)
        except ExtractionError as e:
            self.diagnostics.from_exception(DiagnosticKind.EXTRACTION, e, f"can't parse the example of {name}")
            example = None

        try:
            if isinstance(declaration.type, Struct):
                schema = self.resolver.resolve_struct(declaration.type, owner=name)
            else:
                schema = self.resolver.resolve(declaration.type)
        except ResolutionError as e:
            self.diagnostics.from_exception(DiagnosticKind.RESOLUTION, e, f"can't parse the type of {name}")
            return

        schema.custom_name = custom_name
        if example is not None and isinstance(schema, SchemaNode):
            schema.example = example

        logger.info("Parsing schema %s", custom_name or name)
        self.registry.register(name, schema)

    def finalize(self) -> Document:
        """
        Close JSON:API includes and publish the registry into the document.

        Running it again gives the same document.
        """
        if self.config.jsonapi_includes and not self._includes_closed:
            self.envelopes.close_includes()
            self._includes_closed = True

        if self.config.strict and self.diagnostics.errors:
            raise CompilationError(
                f"{len(self.diagnostics.errors)} error(s) while generating the document",
                self.diagnostics.errors,
            )

        self.document.schemas = self.registry.finalize()
        return self.document
