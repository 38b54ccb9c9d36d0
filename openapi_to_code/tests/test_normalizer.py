import pytest

from openapi_to_code.errors import ExtensionValueError, InvalidSchemaError, SchemaMergeError
from openapi_to_code.pipeline.config import TypeGraphConfig
from openapi_to_code.pipeline.loader import DocumentLoader, ReferenceResolver, SchemaPath
from openapi_to_code.pipeline.schema_ast import (
    AdditionalPropertiesKind,
    AliasNode,
    ArrayNode,
    EnumNode,
    ObjectNode,
    ScalarKind,
    ScalarNode,
    SchemaNormalizer,
    UnionNode,
)
from openapi_to_code.pipeline.schema_ast.normalizer import content_type_tag
from openapi_to_code.utils import to_camel_case


def normalize(schemas, tmp_path, version="3.0.3", config=None):
    document = {"openapi": version, "paths": {}, "components": {"schemas": schemas}}
    loader = DocumentLoader()
    key = loader.register(document, tmp_path / "openapi.json")
    spec = ReferenceResolver(loader, key).resolve()
    return SchemaNormalizer(spec, config or TypeGraphConfig(), to_camel_case).normalize()


def schema_path(*tokens):
    return SchemaPath("openapi.json").child("components", "schemas", *tokens)


def node_at(arena, *tokens):
    return arena[arena.node_at(schema_path(*tokens))]


class TestNullability:
    """nullable in OpenAPI 3.0 and 3.1"""

    def test_nullable_keyword_in_3_0(self, tmp_path):
        arena = normalize({"Thing": {"type": "object", "properties": {"a": {"type": "string", "nullable": True}}}}, tmp_path)
        thing = node_at(arena, "Thing")
        assert thing.field_named("a").nullable is True

    def test_nullable_keyword_ignored_in_3_1(self, tmp_path):
        arena = normalize({"Thing": {"type": "object", "properties": {"a": {"type": "string", "nullable": True}}}}, tmp_path, "3.1.0")
        assert node_at(arena, "Thing").field_named("a").nullable is False

    def test_type_array_with_null(self, tmp_path):
        arena = normalize({"Thing": {"type": "object", "properties": {"a": {"type": ["string", "null"]}}}}, tmp_path, "3.1.0")
        prop = node_at(arena, "Thing", "properties", "a")
        assert isinstance(prop, ScalarNode)
        assert prop.kind == ScalarKind.STRING
        assert prop.nullable is True
        assert node_at(arena, "Thing").field_named("a").nullable is True

    def test_one_of_with_null_member(self, tmp_path):
        arena = normalize(
            {
                "Pet": {"type": "object", "properties": {"name": {"type": "string"}}},
                "Owner": {
                    "type": "object",
                    "properties": {"pet": {"oneOf": [{"$ref": "#/components/schemas/Pet"}, {"type": "null"}]}},
                },
            },
            tmp_path,
            "3.1.0",
        )
        owner = node_at(arena, "Owner")
        pet = owner.field_named("pet")
        assert pet.nullable is True
        assert arena[pet.schema] is node_at(arena, "Pet")

    def test_enum_with_null_value(self, tmp_path):
        arena = normalize({"Color": {"type": "string", "enum": ["red", None, "green"]}}, tmp_path, "3.1.0")
        color = node_at(arena, "Color")
        assert isinstance(color, EnumNode)
        assert color.values == ["red", "green"]
        assert color.nullable is True


class TestShapes:
    """Raw schemas -> IR node kinds"""

    def test_type_array_becomes_union(self, tmp_path):
        arena = normalize({"Value": {"type": ["string", "integer"]}}, tmp_path, "3.1.0")
        value = node_at(arena, "Value")
        assert isinstance(value, UnionNode)
        assert [arena[v.schema].kind for v in value.variants] == [ScalarKind.STRING, ScalarKind.INTEGER]

    def test_array_without_items_holds_dynamic_values(self, tmp_path):
        arena = normalize({"Bag": {"type": "array"}}, tmp_path)
        bag = node_at(arena, "Bag")
        assert isinstance(bag, ArrayNode)
        assert arena[bag.element].kind == ScalarKind.DYNAMIC

    def test_empty_schema_is_dynamic(self, tmp_path):
        arena = normalize({"Anything": {"description": "whatever"}}, tmp_path)
        anything = node_at(arena, "Anything")
        assert isinstance(anything, ScalarNode)
        assert anything.kind == ScalarKind.DYNAMIC
        assert anything.description == "whatever"

    def test_enum_values_are_deduplicated(self, tmp_path):
        arena = normalize({"Level": {"enum": [1, 2, 2, 3]}}, tmp_path)
        level = node_at(arena, "Level")
        assert level.values == [1, 2, 3]
        assert level.kind == ScalarKind.INTEGER

    def test_enum_true_is_not_one(self, tmp_path):
        arena = normalize({"Mixed": {"enum": [1, True, "x", 1.0, False, 0]}}, tmp_path)
        mixed = node_at(arena, "Mixed")
        assert mixed.values == [1, True, "x", False, 0]
        assert [type(value) for value in mixed.values] == [int, bool, str, bool, int]
        assert mixed.kind == ScalarKind.DYNAMIC

    def test_enum_varnames_follow_deduplicated_values(self, tmp_path):
        arena = normalize({"Letter": {"type": "string", "enum": ["a", "a", "b"], "x-enum-varnames": ["A1", "A2", "B"]}}, tmp_path)
        letter = node_at(arena, "Letter")
        assert list(zip(letter.member_names, letter.values)) == [("A1", "a"), ("B", "b")]

    def test_component_ref_is_alias(self, tmp_path):
        arena = normalize(
            {
                "Name": {"type": "string"},
                "Label": {"$ref": "#/components/schemas/Name"},
            },
            tmp_path,
        )
        label = node_at(arena, "Label")
        assert isinstance(label, AliasNode)
        assert arena[label.target] is node_at(arena, "Name")

    def test_external_type_override(self, tmp_path):
        arena = normalize(
            {"Id": {"type": "string", "x-go-type": "uuid.UUID", "x-go-type-import": {"path": "github.com/google/uuid"}}},
            tmp_path,
        )
        node = node_at(arena, "Id")
        assert isinstance(node, AliasNode)
        assert node.override_type == "uuid.UUID"
        assert node.override_import == "github.com/google/uuid"

    @pytest.mark.parametrize(
        "declared,expected",
        [
            ({"type": "object"}, AdditionalPropertiesKind.UNSPECIFIED),
            ({"type": "object", "additionalProperties": False}, AdditionalPropertiesKind.FORBIDDEN),
            ({"type": "object", "additionalProperties": True}, AdditionalPropertiesKind.ANY),
            ({"type": "object", "additionalProperties": {}}, AdditionalPropertiesKind.ANY),
            ({"type": "object", "additionalProperties": {"description": "any value"}}, AdditionalPropertiesKind.ANY),
            ({"type": "object", "additionalProperties": {"type": "string"}}, AdditionalPropertiesKind.TYPED),
        ],
    )
    def test_additional_properties(self, tmp_path, declared, expected):
        arena = normalize({"Thing": declared}, tmp_path)
        thing = node_at(arena, "Thing")
        assert isinstance(thing, ObjectNode)
        assert thing.additional_properties.kind == expected

    def test_typed_additional_properties_schema(self, tmp_path):
        arena = normalize({"Labels": {"type": "object", "additionalProperties": {"type": "string"}}}, tmp_path)
        labels = node_at(arena, "Labels")
        assert arena[labels.additional_properties.schema].kind == ScalarKind.STRING
        assert labels.is_map


class TestInvalidSchemas:
    """Schemas the normalizer rejects"""

    def test_false_schema(self, tmp_path):
        with pytest.raises(InvalidSchemaError):
            normalize({"Never": False}, tmp_path)

    def test_tuple_items(self, tmp_path):
        with pytest.raises(InvalidSchemaError, match="Tuple"):
            normalize({"Pair": {"type": "array", "items": [{"type": "string"}, {"type": "integer"}]}}, tmp_path)

    def test_all_of_with_one_of(self, tmp_path):
        schemas = {
            "A": {"type": "object", "properties": {"a": {"type": "string"}}},
            "B": {"type": "object", "properties": {"b": {"type": "string"}}},
            "C": {
                "allOf": [{"$ref": "#/components/schemas/A"}],
                "oneOf": [{"$ref": "#/components/schemas/A"}, {"$ref": "#/components/schemas/B"}],
            },
        }
        with pytest.raises(SchemaMergeError) as exc_info:
            normalize(schemas, tmp_path)
        assert exc_info.value.path == schema_path("C")

    def test_unknown_type(self, tmp_path):
        with pytest.raises(InvalidSchemaError, match="Unknown schema type"):
            normalize({"Odd": {"type": "decimal"}}, tmp_path)


class TestExtensions:
    """Vendor extensions on properties and types"""

    def test_field_extensions_and_aliases(self, tmp_path):
        arena = normalize(
            {
                "Thing": {
                    "type": "object",
                    "properties": {
                        "second": {"type": "string", "x-order": 2, "x-go-name": "Two"},
                        "first": {"type": "string", "x-order": 1, "x-omitempty": False},
                        "hidden": {"type": "string", "x-go-json-ignore": True},
                        "tagged": {"type": "string", "x-oapi-codegen-extra-tags": {"validate": "required", "db": "tagged"}},
                    },
                }
            },
            tmp_path,
        )
        thing = node_at(arena, "Thing")
        assert [f.name for f in thing.fields] == ["first", "second", "hidden", "tagged"]
        assert thing.field_named("second").override_identifier == "Two"
        assert thing.field_named("first").omit_empty is False
        assert thing.field_named("hidden").ignored is True
        assert list(thing.field_named("tagged").extra_tags) == ["db", "validate"]

    def test_invalid_extension_value(self, tmp_path):
        with pytest.raises(ExtensionValueError, match="x-omitempty"):
            normalize({"Thing": {"type": "object", "properties": {"a": {"type": "string", "x-omitempty": "yes"}}}}, tmp_path)

    def test_enum_varnames_length_mismatch(self, tmp_path):
        with pytest.raises(ExtensionValueError):
            normalize({"Level": {"type": "integer", "enum": [1, 2], "x-enum-varnames": ["One"]}}, tmp_path)


class TestNaming:
    """Named entries registered for the name allocator"""

    def test_inline_entries_follow_parent(self, tmp_path):
        arena = normalize(
            {
                "Pet": {
                    "type": "object",
                    "properties": {
                        "status": {"type": "string", "enum": ["alive", "dead"]},
                        "tags": {"type": "array", "items": {"type": "object", "properties": {"name": {"type": "string"}}}},
                        "nickname": {"type": "string"},
                    },
                }
            },
            tmp_path,
        )
        parts = {entry.parts for entry in arena.entries}
        assert ("Pet",) in parts
        assert ("Status",) in parts
        assert ("Tags", "Item") in parts
        assert ("Nickname",) not in parts

    def test_all_of_members_are_not_named(self, tmp_path):
        arena = normalize(
            {
                "Base": {"type": "object", "properties": {"a": {"type": "string"}}},
                "Derived": {
                    "allOf": [
                        {"$ref": "#/components/schemas/Base"},
                        {"type": "object", "properties": {"b": {"type": "string"}}},
                    ]
                },
            },
            tmp_path,
        )
        assert len(arena.entries) == 2

    def test_content_type_tag(self):
        assert content_type_tag("application/json", to_camel_case) == "JSON"
        assert content_type_tag("application/json; charset=utf-8", to_camel_case) == "JSON"
        assert content_type_tag("application/problem+json", to_camel_case) == "ProblemJSON"
        assert content_type_tag("multipart/form-data", to_camel_case) == "Multipart"


if __name__ == "__main__":
    pytest.main([__file__])
