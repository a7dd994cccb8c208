"""
Merger module.

Merges documents produced by separate runs into one.
"""

from __future__ import annotations

from .document_merger import DocumentMerger, load_documents

__all__ = [
    "DocumentMerger",
    "load_documents",
]
