"""
Pipeline - annotation-driven API document compiler.

This module compiles the declarations extracted from a source tree into an
API-description document in several phases:

1. Phase 1 (Declarations): Load the parsed declarations of each source file
2. Phase 2 (Analyzer): Extract tags, resolve types into schemas and register them
3. Phase 3 (Envelopes): Generate JSON:API envelopes and close their includes
4. Phase 4 (Document): Fold path and info blocks, finalize component schemas
5. Phase 5 (Merger): Optional merge with documents produced by other runs
"""

from __future__ import annotations

from .compiler import SchemaCompiler, is_parsable_path
from .config import CompilerConfig, ExternalType, load_external_types
from .declarations import DeclarationLoader, SourceFile
from .document import Document, dump_document, load_document
from .errors import (
    CompilationError,
    Diagnostic,
    MergeConflictError,
    OpenAPIBuildError,
    SchemaConflictError,
)
from .merger import DocumentMerger, load_documents

__all__ = [
    "SchemaCompiler",
    "is_parsable_path",
    "CompilerConfig",
    "ExternalType",
    "load_external_types",
    "DeclarationLoader",
    "SourceFile",
    "Document",
    "dump_document",
    "load_document",
    "DocumentMerger",
    "load_documents",
    "OpenAPIBuildError",
    "CompilationError",
    "SchemaConflictError",
    "MergeConflictError",
    "Diagnostic",
]
