"""
Configuration for the schema compiler.

Run-mode switches are plain parameters of a compilation run; nothing is read
from ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError


@dataclass
class ExternalType:
    """Type/format pair for an identifier coming from another package."""

    type: str = ""
    format: str = ""


@dataclass
class CompilerConfig:
    """Configuration options for a compilation run."""

    # Abort on a structural error, and fail the run if any error was recorded
    strict: bool = False

    # Add the "includes" property to JSON:API resource documents
    jsonapi_includes: bool = True

    # Vendored paths that should still be parsed (others containing "vendor" are skipped)
    vendor_paths: list[str] = field(default_factory=list)

    # Qualified identifiers (e.g. "decimal.Decimal") mapped to a type/format pair
    external_types: dict[str, ExternalType] = field(default_factory=dict)

    # Base directory for import(...) directives in info descriptions (empty = cwd)
    import_base_dir: str = ""

    # Value of the top-level "openapi" field
    openapi_version: str = "3.0.0"

    @staticmethod
    def from_dict(d: dict) -> CompilerConfig:
        """Create a config from a dictionary."""
        if not isinstance(d, dict):
            raise ConfigurationError("configuration must be a mapping", str(d))
        config = CompilerConfig()
        for k, v in d.items():
            if k == "external_types":
                if not isinstance(v, dict):
                    raise ConfigurationError("external_types must be a mapping", str(v))
                config.external_types = {name: _external_type(name, value) for name, value in v.items()}
            elif k == "vendor_paths":
                if not isinstance(v, list):
                    raise ConfigurationError("vendor_paths must be a list", str(v))
                config.vendor_paths = [str(p) for p in v]
            elif hasattr(config, k):
                setattr(config, k, v)
            else:
                raise ConfigurationError(f"Unknown configuration key '{k}'")
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "strict": self.strict,
            "jsonapi_includes": self.jsonapi_includes,
            "vendor_paths": list(self.vendor_paths),
            "external_types": {name: {"type": t.type, "format": t.format} for name, t in self.external_types.items()},
            "import_base_dir": self.import_base_dir,
            "openapi_version": self.openapi_version,
        }


def _external_type(name: str, value) -> ExternalType:
    if isinstance(value, ExternalType):
        return value
    if not isinstance(value, dict) or "type" not in value:
        raise ConfigurationError(f"External type '{name}' needs a 'type' entry", str(value))
    return ExternalType(type=value["type"], format=value.get("format", ""))


def parse_tsv(text: str) -> list[dict[str, str]]:
    """Parse tab separated values with a header row.

    Everything after a '#' is a comment, blank lines are skipped and empty
    cells are left out of the resulting records.
    """
    records: list[list[str]] = []
    for line in text.split("\n"):
        line = line.split("#")[0]
        if not line.strip():
            continue
        records.append(line.split("\t"))

    if not records:
        return []

    keys = [k.strip() for k in records[0]]
    rows = []
    for record in records[1:]:
        row = {}
        for i, key in enumerate(keys):
            if i < len(record):
                value = record[i].strip()
                if value:
                    row[key] = value
        if row:
            rows.append(row)
    return rows


def load_external_types(path: Path | str) -> dict[str, ExternalType]:
    """Load an external types table from a TSV file.

    A missing file yields an empty table. Rows need a "name" column; "type"
    and "format" are optional.
    """
    path = Path(path)
    if not path.is_file():
        return {}
    rows = parse_tsv(path.read_text(encoding="utf-8"))
    return {row["name"]: ExternalType(type=row.get("type", ""), format=row.get("format", "")) for row in rows if "name" in row}
