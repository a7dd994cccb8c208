"""
Document module.

Contains the API-description document model and the extraction of path and
info blocks from documentation comments.
"""

from __future__ import annotations

from .blocks import BlockExtractor
from .model import Document, Info, Operation, dump_document, load_document

__all__ = [
    "Document",
    "Info",
    "Operation",
    "BlockExtractor",
    "dump_document",
    "load_document",
]
