from pathlib import Path

import pytest

from openapi_to_code.errors import NameCollisionExhausted
from openapi_to_code.pipeline import PipelineGenerator, TypeGraphConfig
from openapi_to_code.pipeline.analyzer.name_allocator import sanitize_enum_value
from openapi_to_code.utils import to_camel_case

TEST_DATA = Path(__file__).parent / "test_data"


def build(schemas, config=None, language="go"):
    return PipelineGenerator({"openapi": "3.0.3", "paths": {}, "components": {"schemas": schemas}}, config, language).generate()


def constants(graph, name):
    return [c.name for c in graph.type_named(name).constants]


class TestTypeNames:
    """Type names across namespaces"""

    def test_same_name_in_four_namespaces(self):
        graph = PipelineGenerator(TEST_DATA / "namespaces.json").generate()
        names = [node.name for node in graph.named_types]
        assert names == ["Bar", "BarParameter", "BarResponse", "BarRequestBody"]

    def test_numeric_suffix_within_namespace(self):
        graph = build({"a_b": {"type": "string"}, "a-b": {"type": "integer"}})
        assert [node.name for node in graph.named_types] == ["AB", "AB2"]

    def test_collision_exhausted(self):
        config = TypeGraphConfig(max_name_attempts=2)
        with pytest.raises(NameCollisionExhausted):
            build({"a_b": {"type": "string"}, "a-b": {"type": "string"}, "a.b": {"type": "string"}}, config)

    def test_inline_names(self):
        graph = build(
            {
                "Pet": {
                    "type": "object",
                    "properties": {
                        "status": {"type": "string", "enum": ["alive", "dead"]},
                        "tags": {"type": "array", "items": {"type": "object", "properties": {"name": {"type": "string"}}}},
                    },
                }
            }
        )
        assert [node.name for node in graph.named_types] == ["Pet", "PetStatus", "PetTagsItem"]

    def test_inline_name_collides_with_component(self):
        graph = build(
            {
                "Pet": {"type": "object", "properties": {"status": {"type": "string", "enum": ["alive", "dead"]}}},
                "PetStatus": {"type": "string"},
            }
        )
        assert graph.type_named("PetStatus").name == "PetStatus"
        assert graph.type_named("PetStatus2").values == ("alive", "dead")

    def test_type_name_override(self):
        graph = build({"pet": {"type": "object", "x-go-type-name": "Animal", "properties": {"a": {"type": "string"}}}})
        assert [node.name for node in graph.named_types] == ["Animal"]

    def test_reserved_type_name(self):
        graph = build({"Thing": {"type": "object", "x-type-name": "map", "properties": {"a": {"type": "string"}}}})
        assert graph.named_types[0].name == "mapType"

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            build({"A": {"type": "string"}}, language="cobol")

    def test_operation_names(self):
        graph = PipelineGenerator(TEST_DATA / "petstore.json").generate()
        names = [node.name for node in graph.named_types]
        assert names == ["Pet", "Dog", "Cat", "GetPetFilterParameter", "GetPet200JSONResponse", "CreatePetJSONRequestBody"]

    def test_operation_filters(self):
        config = TypeGraphConfig(exclude_tags=["admin"])
        graph = PipelineGenerator(TEST_DATA / "petstore.json", config).generate()
        assert "CreatePetJSONRequestBody" not in [node.name for node in graph.named_types]

    def test_external_package_names(self):
        config = TypeGraphConfig(import_mapping={"common.yaml": "common"})
        graph = PipelineGenerator(TEST_DATA / "external" / "main.yaml", config).generate()

        assert graph.type_named("Order").package == ""
        assert graph.type_named("Customer", "common").qualified_name == "common.Customer"
        assert graph.type_named("Id", "common").format == "uuid"

    def test_external_documents_without_mapping(self):
        graph = PipelineGenerator(TEST_DATA / "external" / "main.yaml").generate()
        assert [node.name for node in graph.named_types] == ["Order", "Id", "Customer"]


class TestFieldIdentifiers:
    """Field identifiers within a record"""

    def test_unique_identifiers(self):
        graph = build({"Thing": {"type": "object", "properties": {"foo_bar": {"type": "string"}, "fooBar": {"type": "string"}}}})
        assert [f.identifier for f in graph.type_named("Thing").fields] == ["FooBar", "FooBar2"]

    def test_additional_properties_is_reserved(self):
        graph = build(
            {
                "Thing": {
                    "type": "object",
                    "properties": {"additional_properties": {"type": "string"}},
                    "additionalProperties": {"type": "string"},
                }
            }
        )
        assert graph.type_named("Thing").fields[0].identifier == "AdditionalProperties2"

    def test_override_and_reserved_word(self):
        graph = build(
            {"Thing": {"type": "object", "properties": {"kind": {"type": "string", "x-go-name": "type"}, "id": {"type": "string", "x-field-name": "ID"}}}}
        )
        assert [f.identifier for f in graph.type_named("Thing").fields] == ["type_", "ID"]


class TestEnumConstants:
    """Enum constant sanitization and prefixing"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("", "Empty"),
            ("1Foo", "N1Foo"),
            (" Foo ", "LeadingSpaceFooTrailingSpace"),
            (" Foo", "LeadingSpaceFoo"),
            ("Foo ", "FooTrailingSpace"),
            ("  ", "SpaceSpace"),
            ("foo_bar", "FooBar"),
            (-1, "Minus1"),
            (1.5, "N1Dot5"),
            (True, "True"),
        ],
    )
    def test_sanitize(self, value, expected):
        assert sanitize_enum_value(value, to_camel_case) == expected

    def test_whitespace_variants_stay_distinct(self):
        graph = build({"Values": {"type": "string", "enum": ["", "1Foo", " Foo ", "Foo", " Foo"]}})
        assert constants(graph, "Values") == ["Empty", "N1Foo", "LeadingSpaceFooTrailingSpace", "Foo", "LeadingSpaceFoo"]

    def test_collapsing_values_are_transliterated(self):
        graph = build({"Values": {"type": "string", "enum": ["Foo-Bar", "Foo Bar"]}})
        assert constants(graph, "Values") == ["FooBar", "FooSpaceBar"]

    def test_self_collision_prefixes_every_constant(self):
        graph = build({"Bar": {"type": "string", "enum": ["Bar", "Baz"]}})
        assert constants(graph, "Bar") == ["BarBar", "BarBaz"]

    def test_collision_with_another_type(self):
        graph = build(
            {
                "Pet": {"type": "object", "properties": {"name": {"type": "string"}}},
                "Kind": {"type": "string", "enum": ["Pet", "Plant"]},
            }
        )
        assert constants(graph, "Kind") == ["KindPet", "KindPlant"]

    def test_shared_constants_across_enums(self):
        graph = build(
            {
                "Color": {"type": "string", "enum": ["red", "green"]},
                "Light": {"type": "string", "enum": ["red", "off"]},
                "Size": {"type": "string", "enum": ["small", "large"]},
            }
        )
        assert constants(graph, "Color") == ["ColorRed", "ColorGreen"]
        assert constants(graph, "Light") == ["LightRed", "LightOff"]
        assert constants(graph, "Size") == ["Small", "Large"]

    def test_always_prefix(self):
        graph = build({"Size": {"type": "string", "enum": ["small", "large"]}}, TypeGraphConfig(always_prefix_enum_values=True))
        assert constants(graph, "Size") == ["SizeSmall", "SizeLarge"]

    def test_varnames_override(self):
        graph = build({"Level": {"type": "integer", "enum": [1, 2], "x-enum-varnames": ["Low", "High"]}})
        assert constants(graph, "Level") == ["Low", "High"]

    def test_boolean_and_number_literals_stay_distinct(self):
        graph = build({"Mixed": {"enum": [1, True, "x"]}})
        assert constants(graph, "Mixed") == ["N1", "True", "X"]

    def test_varnames_of_duplicate_values(self):
        graph = build({"Letter": {"type": "string", "enum": ["a", "a", "b"], "x-enum-varnames": ["A1", "A2", "B"]}})
        assert constants(graph, "Letter") == ["A1", "B"]
        assert [c.value for c in graph.type_named("Letter").constants] == ["a", "b"]


if __name__ == "__main__":
    pytest.main([__file__])
