"""
Tests for JSON:API envelope generation and includes.
"""

from __future__ import annotations

import pytest

from source_to_openapi.pipeline.analyzer.jsonapi import (
    ENVELOPE_SUFFIXES,
    INCLUDES_PROPERTY,
    EnvelopeGenerator,
    is_resource,
    transitive_closure,
)
from source_to_openapi.pipeline.analyzer.registry import SchemaRegistry
from source_to_openapi.pipeline.analyzer.type_resolver import TypeResolver
from source_to_openapi.pipeline.config import CompilerConfig
from source_to_openapi.pipeline.declarations.nodes import Array, FieldDecl, Ident, Pointer, Struct
from source_to_openapi.pipeline.errors import DiagnosticKind, Diagnostics, StructuralError


def tagged(name: str, type_, tag: str) -> FieldDecl:
    return FieldDecl(names=[name], type=type_, tag=tag)


def resource(type_name: str, *fields: FieldDecl) -> Struct:
    return Struct(fields=[tagged("ID", Ident(name="string"), f'jsonapi:"primary,{type_name}"'), *fields])


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def registry():
    return SchemaRegistry()


@pytest.fixture
def generator(registry, diagnostics):
    return EnvelopeGenerator(TypeResolver(CompilerConfig(), diagnostics), registry, diagnostics)


class TestEnvelopes:
    """Tests for the eight envelope schemas of a resource."""

    def test_is_resource(self):
        assert is_resource(resource("users"))
        assert not is_resource(Struct(fields=[tagged("Name", Ident(name="string"), 'json:"name"')]))

    def test_eight_envelopes(self, generator, registry):
        generator.generate("User", resource("users", tagged("Name", Ident(name="string"), 'jsonapi:"attr,name"')))
        published = registry.finalize()
        assert sorted(published) == sorted(["AnyValue", *(f"User{suffix}" for suffix in ENVELOPE_SUFFIXES)])

    def test_envelope_shapes(self, generator, registry):
        generator.generate(
            "User",
            resource(
                "users",
                tagged("Name", Ident(name="string"), 'jsonapi:"attr,name" validate:"required"'),
                tagged("Nickname", Ident(name="string"), 'jsonapi:"attr,nickname,omitempty"'),
            ),
        )
        published = {name: schema.to_dict() for name, schema in registry.finalize().items()}

        assert published["User"] == {
            "required": ["data"],
            "type": "object",
            "properties": {"data": {"$ref": "#/components/schemas/UserData"}},
        }
        assert published["UserIdentifier"] == {
            "required": ["id", "type"],
            "type": "object",
            "properties": {"id": {"type": "string"}, "type": {"type": "string", "enum": ["users"]}},
        }
        assert published["UserCollection"]["properties"]["data"] == {
            "type": "array",
            "items": {"$ref": "#/components/schemas/UserData"},
        }
        assert published["UserIdentifierCollection"]["properties"]["data"]["items"] == {
            "$ref": "#/components/schemas/UserIdentifier"
        }
        assert published["UserIdentifierData"]["properties"]["data"] == {"$ref": "#/components/schemas/UserIdentifier"}
        assert published["UserData"]["properties"]["attributes"] == {"$ref": "#/components/schemas/UserAttributes"}
        assert published["UserData"]["properties"]["relationships"] == {"$ref": "#/components/schemas/UserRelationships"}
        assert published["UserAttributes"] == {
            "required": ["name"],
            "type": "object",
            "properties": {"name": {"type": "string"}, "nickname": {"nullable": True, "type": "string"}},
        }
        assert published["UserRelationships"] == {"type": "object"}

    def test_attribute_example_and_coercion(self, generator, registry):
        """Test that attributes get documented examples and string coercion like plain fields."""
        count = FieldDecl(names=["Count"], type=Ident(name="int"), tag='jsonapi:"attr,count"', doc="@openapi:example 42\n")
        code = tagged("Code", Ident(name="int"), 'json:",string" jsonapi:"attr,code"')
        generator.generate("User", resource("users", count, code))

        properties = registry.get("UserAttributes").to_dict()["properties"]
        assert properties["count"] == {"type": "integer", "example": 42}
        assert properties["code"] == {"type": "string"}

    def test_illegal_attribute_coercion(self, generator, registry, diagnostics):
        tags = tagged("Tags", Array(elem=Ident(name="string")), 'json:",string" jsonapi:"attr,tags"')
        generator.generate("User", resource("users", tags))

        assert "tags" not in registry.get("UserAttributes").properties
        assert len(diagnostics.errors) == 1
        assert diagnostics.errors[0].kind is DiagnosticKind.EXTRACTION

    def test_relationships(self, generator, registry):
        """Test singular, nullable and collection relationships."""
        generator.generate(
            "Pet",
            resource(
                "pets",
                tagged("Owner", Ident(name="User"), 'jsonapi:"relation,owner"'),
                tagged("Vet", Pointer(elem=Ident(name="User")), 'jsonapi:"relation,vet"'),
                tagged("Friends", Array(elem=Pointer(elem=Ident(name="Pet"))), 'jsonapi:"relation,friends"'),
            ),
        )
        relationships = registry.get("PetRelationships").to_dict()["properties"]
        assert relationships["owner"] == {
            "required": ["data"],
            "type": "object",
            "properties": {"data": {"$ref": "#/components/schemas/UserIdentifier"}},
        }
        assert relationships["vet"]["nullable"] is True
        assert relationships["friends"] == {"$ref": "#/components/schemas/PetIdentifierCollection"}
        assert generator.edges == {"Pet": ["User", "Pet"]}

    def test_custom_name_prefixes_envelopes(self, generator, registry):
        generator.generate("User", resource("users"), custom_name="Account")
        published = registry.finalize()
        assert "AccountData" in published
        assert "UserData" not in published
        assert published["Account"].properties["data"].ref == "#/components/schemas/AccountData"

    def test_missing_tags(self, generator):
        with pytest.raises(StructuralError) as exc_info:
            generator.generate("User", resource("users", tagged("Name", Ident(name="string"), 'json:"name"')))
        assert "missing fields" in exc_info.value.message
        assert exc_info.value.content == "Name"

    def test_ignored_field_needs_no_tag(self, generator, registry):
        generator.generate("User", resource("users", tagged("Secret", Ident(name="string"), 'json:"-"')))
        assert "User" in registry

    def test_no_primary(self, generator):
        with pytest.raises(StructuralError):
            generator.generate("User", Struct(fields=[tagged("Name", Ident(name="string"), 'jsonapi:"attr,name"')]))

    def test_two_primaries(self, generator):
        with pytest.raises(StructuralError):
            generator.generate("User", resource("users", tagged("Id", Ident(name="string"), 'jsonapi:"primary,users"')))

    def test_primary_must_be_named_id(self, generator):
        struct = Struct(fields=[tagged("Key", Ident(name="string"), 'jsonapi:"primary,users"')])
        with pytest.raises(StructuralError) as exc_info:
            generator.generate("User", struct)
        assert exc_info.value.content == "Key"

    def test_primary_needs_a_type(self, generator):
        struct = Struct(fields=[tagged("Id", Ident(name="string"), 'jsonapi:"primary"')])
        with pytest.raises(StructuralError):
            generator.generate("User", struct)

    def test_relation_to_primitive(self, generator):
        with pytest.raises(StructuralError):
            generator.generate("User", resource("users", tagged("Tag", Ident(name="string"), 'jsonapi:"relation,tag"')))


class TestIncludes:
    """Tests for the includes property."""

    def test_transitive_closure(self):
        edges = {"A": ["B"], "B": ["C"], "C": []}
        assert transitive_closure(edges, "A") == ["B", "C"]
        assert transitive_closure(edges, "C") == []

    def test_transitive_closure_with_cycle(self):
        edges = {"A": ["B"], "B": ["A"]}
        assert transitive_closure(edges, "A") == ["A", "B"]

    def test_chain(self, generator, registry):
        """Test that includes list every resource reachable through relations."""
        generator.generate("A", resource("as", tagged("B", Ident(name="B"), 'jsonapi:"relation,b"')))
        generator.generate("B", resource("bs", tagged("C", Ident(name="C"), 'jsonapi:"relation,c"')))
        generator.generate("C", resource("cs"))
        generator.close_includes()

        includes = registry.get("A").to_dict()["properties"][INCLUDES_PROPERTY]
        assert includes == {
            "nullable": True,
            "type": "array",
            "items": {
                "anyOf": [
                    {"$ref": "#/components/schemas/BData"},
                    {"$ref": "#/components/schemas/CData"},
                ]
            },
        }
        assert INCLUDES_PROPERTY not in registry.get("C").properties

    def test_unknown_target_reported_once(self, generator, diagnostics, registry):
        generator.generate("A", resource("as", tagged("X", Ident(name="Plain"), 'jsonapi:"relation,x"')))
        generator.generate("B", resource("bs", tagged("X", Ident(name="Plain"), 'jsonapi:"relation,x"')))
        generator.close_includes()

        assert len(diagnostics.errors) == 1
        assert diagnostics.errors[0].kind is DiagnosticKind.STRUCTURAL
        assert INCLUDES_PROPERTY not in registry.get("A").properties
