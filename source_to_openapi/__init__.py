"""Source to OpenAPI

A Python package compiling annotated source declarations into an OpenAPI
document. Supports schema extraction from struct tags, JSON:API resource
envelopes, path/info documentation blocks and multi-document merging.
"""

__version__ = "1.0.0"

from .pipeline import (
    CompilationError,
    CompilerConfig,
    DeclarationLoader,
    Document,
    DocumentMerger,
    MergeConflictError,
    OpenAPIBuildError,
    SchemaCompiler,
    SchemaConflictError,
    dump_document,
    load_document,
)

__all__ = [
    "SchemaCompiler",
    "CompilerConfig",
    "DeclarationLoader",
    "Document",
    "DocumentMerger",
    "dump_document",
    "load_document",
    "OpenAPIBuildError",
    "CompilationError",
    "SchemaConflictError",
    "MergeConflictError",
]
