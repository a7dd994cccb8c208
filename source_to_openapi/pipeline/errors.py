"""
Errors and diagnostics raised or recorded while building a document.

Non-fatal problems (a malformed tag, an unsupported field type, a broken
YAML block) are recorded as Diagnostic entries so that one bad declaration
does not abort a whole run. Fatal problems are raised as exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class OpenAPIBuildError(Exception):
    """Base class for every error raised by the compiler.

    Attributes:
        message: Human readable description of the problem
        content: Offending content (tag, YAML block, url + verb...), if any
    """

    def __init__(self, message: str, content: str = ""):
        super().__init__(message)
        self.message = message
        self.content = content

    def __str__(self) -> str:
        if self.content:
            return f"{self.message} ({self.content})"
        return self.message


class ExtractionError(OpenAPIBuildError):
    """A tag or annotation could not be parsed."""


class ResolutionError(OpenAPIBuildError):
    """A type descriptor has a shape that cannot be turned into a schema."""


class StructuralError(OpenAPIBuildError):
    """A declaration is badly configured; aborts the current file."""


class SchemaConflictError(OpenAPIBuildError):
    """Two different schemas were declared under the same name."""


class MergeConflictError(OpenAPIBuildError):
    """Two documents define the same path verb or schema differently."""


class CompilationError(OpenAPIBuildError):
    """Raised at the end of a strict run that recorded errors."""

    def __init__(self, message: str, diagnostics: list[Diagnostic] | None = None):
        super().__init__(message)
        self.diagnostics = diagnostics or []


class DeclarationLoadError(OpenAPIBuildError):
    """A declaration dump is malformed."""


class DocumentLoadError(OpenAPIBuildError):
    """A serialized document cannot be loaded."""


class ConfigurationError(OpenAPIBuildError):
    """The compiler configuration is invalid."""


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


class DiagnosticKind(str, Enum):
    EXTRACTION = "extraction"
    RESOLUTION = "resolution"
    STRUCTURAL = "structural"
    DECODE = "decode"
    CONFLICT = "conflict"
    IMPORT = "import"


@dataclass
class Diagnostic:
    """A problem recorded during a run."""

    severity: Severity = Severity.ERROR
    kind: DiagnosticKind = DiagnosticKind.RESOLUTION
    message: str = ""
    content: str = ""
    source: str = ""  # Source file path, when known

    def __str__(self) -> str:
        parts = [f"[{self.severity.value}] {self.kind.value}: {self.message}"]
        if self.content:
            parts.append(f"content={self.content!r}")
        if self.source:
            parts.append(f"source={self.source}")
        return " ".join(parts)


@dataclass
class Diagnostics:
    """Accumulates diagnostics over a run.

    The current source is stamped on every recorded diagnostic.
    """

    entries: list[Diagnostic] = field(default_factory=list)
    current_source: str = ""

    def warning(self, kind: DiagnosticKind, message: str, content: str = "") -> Diagnostic:
        return self._record(Severity.WARNING, kind, message, content)

    def error(self, kind: DiagnosticKind, message: str, content: str = "") -> Diagnostic:
        return self._record(Severity.ERROR, kind, message, content)

    def fatal(self, kind: DiagnosticKind, message: str, content: str = "") -> Diagnostic:
        return self._record(Severity.FATAL, kind, message, content)

    def from_exception(self, kind: DiagnosticKind, exc: OpenAPIBuildError, context: str = "") -> Diagnostic:
        """Record an error diagnostic from an exception."""
        message = f"{context}: {exc.message}" if context else exc.message
        return self.error(kind, message, exc.content)

    @property
    def errors(self) -> list[Diagnostic]:
        """Diagnostics that make a strict run fail."""
        return [d for d in self.entries if d.severity is not Severity.WARNING]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.entries if d.severity is Severity.WARNING]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def _record(self, severity: Severity, kind: DiagnosticKind, message: str, content: str) -> Diagnostic:
        diagnostic = Diagnostic(
            severity=severity,
            kind=kind,
            message=message,
            content=content,
            source=self.current_source,
        )
        self.entries.append(diagnostic)
        if severity is Severity.WARNING:
            logger.warning("%s", diagnostic)
        else:
            logger.error("%s", diagnostic)
        return diagnostic
