"""
Tests for declaration dump loading and compiler configuration.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from source_to_openapi.pipeline.config import CompilerConfig, ExternalType, load_external_types, parse_tsv
from source_to_openapi.pipeline.declarations import DeclarationLoader
from source_to_openapi.pipeline.declarations.nodes import (
    Array,
    Ident,
    Interface,
    Map,
    Pointer,
    Selector,
    Struct,
    Unsupported,
)
from source_to_openapi.pipeline.errors import ConfigurationError, DeclarationLoadError

TEST_DATA = Path(__file__).parent / "test_data"


class TestDeclarationLoader:
    """Tests for DeclarationLoader."""

    def test_parse_type_shorthand(self):
        assert DeclarationLoader().parse_type("string") == Ident(name="string")

    def test_parse_nested_types(self):
        raw = {
            "kind": "map",
            "key": "string",
            "value": {"kind": "array", "elem": {"kind": "pointer", "elem": {"kind": "selector", "target": "time", "name": "Time"}}},
        }
        assert DeclarationLoader().parse_type(raw) == Map(
            key=Ident(name="string"),
            value=Array(elem=Pointer(elem=Selector(target=Ident(name="time"), name="Time"))),
        )

    def test_interface_and_unsupported(self):
        loader = DeclarationLoader()
        assert loader.parse_type({"kind": "interface"}) == Interface()
        assert loader.parse_type({"kind": "func"}) == Unsupported(kind="func")

    def test_missing_kind(self):
        with pytest.raises(DeclarationLoadError):
            DeclarationLoader().parse_type({"name": "string"})

    def test_missing_declaration_name(self):
        with pytest.raises(DeclarationLoadError):
            DeclarationLoader().parse({"declarations": [{"type": "string"}]})

    def test_load_json_file(self):
        source = DeclarationLoader().load_file(TEST_DATA / "jsontags" / "components.json")
        assert source.path == "datatest/jsontags/components.go"
        assert [d.name for d in source.declarations] == ["Bar", "Baz"]
        bar = source.declarations[0].type
        assert isinstance(bar, Struct)
        assert bar.fields[0].name == "RequiredField"
        assert bar.fields[0].tag == 'json:"requiredField" validate:"required"'

    def test_load_yaml_file(self):
        source = DeclarationLoader().load_file(TEST_DATA / "petstore" / "pets.yaml")
        assert len(source.comments) == 3
        pet = source.declarations[0].type
        assert pet.fields[0].is_embedded
        assert not pet.fields[-1].exported

    def test_load_paths_walks_directories(self):
        files = DeclarationLoader().load_paths([TEST_DATA / "jsontags", TEST_DATA / "petstore"])
        assert [f.path for f in files] == ["datatest/jsontags/components.go", "petstore/pets.go"]

    def test_invalid_file(self, tmp_path):
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")
        with pytest.raises(DeclarationLoadError):
            DeclarationLoader().load_file(broken)

    def test_default_path(self, tmp_path):
        dump = tmp_path / "dump.json"
        dump.write_text(json.dumps({"declarations": []}))
        assert DeclarationLoader().load_file(dump).path == str(dump)


class TestCompilerConfig:
    """Tests for CompilerConfig."""

    def test_defaults(self):
        config = CompilerConfig()
        assert not config.strict
        assert config.jsonapi_includes
        assert config.openapi_version == "3.0.0"

    def test_from_dict_round_trip(self):
        data = {
            "strict": True,
            "jsonapi_includes": False,
            "vendor_paths": ["vendor/acme"],
            "external_types": {"decimal.Decimal": {"type": "string", "format": "decimal"}},
            "import_base_dir": "docs",
            "openapi_version": "3.0.3",
        }
        config = CompilerConfig.from_dict(data)
        assert config.external_types["decimal.Decimal"] == ExternalType(type="string", format="decimal")
        assert config.to_dict() == data

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            CompilerConfig.from_dict({"stricter": True})

    def test_external_type_needs_type(self):
        with pytest.raises(ConfigurationError):
            CompilerConfig.from_dict({"external_types": {"uuid.UUID": {"format": "uuid"}}})


class TestExternalTypesTable:
    """Tests for the TSV external types table."""

    def test_parse_tsv(self):
        text = "name\ttype\tformat\n# comment line\n\nuuid.UUID\tstring\tuuid  # trailing\ndecimal.Decimal\tnumber\t\n"
        assert parse_tsv(text) == [
            {"name": "uuid.UUID", "type": "string", "format": "uuid"},
            {"name": "decimal.Decimal", "type": "number"},
        ]

    def test_parse_empty(self):
        assert parse_tsv("# nothing\n") == []

    def test_load_external_types(self, tmp_path):
        table = tmp_path / "types.tsv"
        table.write_text("name\ttype\tformat\nuuid.UUID\tstring\tuuid\n")
        assert load_external_types(table) == {"uuid.UUID": ExternalType(type="string", format="uuid")}

    def test_missing_table(self, tmp_path):
        assert load_external_types(tmp_path / "missing.tsv") == {}
