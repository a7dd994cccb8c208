#!/usr/bin/env python3

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from source_to_openapi.source_to_openapi import source_to_openapi

TEST_DATA = Path(__file__).parent / "test_data"


class TestBuildCommand:
    """Test cases for the build command"""

    def test_build_writes_document(self, tmp_path):
        """Test building a document from a directory of dumps"""
        output = tmp_path / "openapi.yaml"
        result = CliRunner().invoke(source_to_openapi, ["build", str(TEST_DATA / "petstore"), "-o", str(output)])

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(output.read_text())
        assert document["openapi"] == "3.0.0"
        assert document["info"]["title"] == "Pet store"
        assert "Owner" in document["components"]["schemas"]

    def test_build_with_config_file(self, tmp_path):
        """Test that the config file is honoured"""
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"jsonapi_includes": False, "openapi_version": "3.0.3"}))
        output = tmp_path / "openapi.yaml"
        result = CliRunner().invoke(
            source_to_openapi,
            ["build", str(TEST_DATA / "jsonapitags"), "-c", str(config), "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(output.read_text())
        assert document["openapi"] == "3.0.3"
        assert "includes" not in document["components"]["schemas"]["Foo"]["properties"]

    def test_no_jsonapi_includes_flag(self, tmp_path):
        output = tmp_path / "openapi.yaml"
        result = CliRunner().invoke(
            source_to_openapi,
            ["build", str(TEST_DATA / "jsonapitags"), "--no-jsonapi-includes", "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(output.read_text())
        assert "includes" not in document["components"]["schemas"]["Foo"]["properties"]

    def test_types_file(self, tmp_path):
        dump = tmp_path / "money.json"
        dump.write_text(
            json.dumps(
                {
                    "path": "money.go",
                    "declarations": [
                        {
                            "name": "Price",
                            "doc": "@openapi:schema\n",
                            "type": {"kind": "selector", "target": "decimal", "name": "Decimal"},
                        }
                    ],
                }
            )
        )
        types = tmp_path / "types.tsv"
        types.write_text("name\ttype\tformat\ndecimal.Decimal\tstring\tdecimal\n")
        output = tmp_path / "openapi.yaml"
        result = CliRunner().invoke(
            source_to_openapi,
            ["build", str(dump), "--types-file", str(types), "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        schemas = yaml.safe_load(output.read_text())["components"]["schemas"]
        assert schemas["Price"] == {"type": "string", "format": "decimal"}

    def test_strict_failure(self, tmp_path):
        """Test that a strict run with errors exits with a non-zero code"""
        dump = tmp_path / "bad.json"
        dump.write_text(
            json.dumps(
                {
                    "path": "bad.go",
                    "declarations": [
                        {
                            "name": "Bad",
                            "doc": "@openapi:schema\n",
                            "type": {"kind": "struct", "fields": [{"names": ["X"], "type": "string", "tag": 'json:"x'}]},
                        }
                    ],
                }
            )
        )
        output = tmp_path / "openapi.yaml"
        result = CliRunner().invoke(source_to_openapi, ["build", str(dump), "--strict", "-o", str(output)])

        assert result.exit_code == 1
        assert not output.exists()

    def test_malformed_config_file(self, tmp_path):
        """Test that an undecodable config file is reported without a traceback"""
        config = tmp_path / "config.json"
        config.write_text('{"strict": ')
        output = tmp_path / "openapi.yaml"
        result = CliRunner().invoke(
            source_to_openapi,
            ["build", str(TEST_DATA / "petstore"), "-c", str(config), "-o", str(output)],
        )

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert not output.exists()

    def test_unknown_config_key(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"no_such_option": True}))
        result = CliRunner().invoke(source_to_openapi, ["build", str(TEST_DATA / "petstore"), "-c", str(config)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_missing_input(self):
        result = CliRunner().invoke(source_to_openapi, ["build", "does/not/exist"])
        assert result.exit_code != 0


class TestMergeCommand:
    """Test cases for the merge command"""

    def test_merge(self, tmp_path):
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "billing.yaml").write_text((TEST_DATA / "documents" / "billing.yaml").read_text())
        output = tmp_path / "merged.yaml"
        result = CliRunner().invoke(
            source_to_openapi,
            ["merge", "--main", str(TEST_DATA / "documents" / "main.yaml"), "--dir", str(docs), "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        merged = yaml.safe_load(output.read_text())
        assert sorted(merged["paths"]) == ["/invoices", "/pets"]
        assert merged["info"]["title"] == "Main"

    def test_merge_conflict(self, tmp_path):
        output = tmp_path / "merged.yaml"
        result = CliRunner().invoke(
            source_to_openapi,
            [
                "merge",
                "--main",
                str(TEST_DATA / "documents" / "main.yaml"),
                "--dir",
                str(TEST_DATA / "documents"),
                "-o",
                str(output),
            ],
        )

        assert result.exit_code == 1
        assert "Pet" in result.output
        assert not output.exists()
