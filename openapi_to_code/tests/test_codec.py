from pathlib import Path

import pytest

from openapi_to_code.errors import DecodeError, EncodeError, NotSetError, UnionResolutionError
from openapi_to_code.pipeline import PipelineGenerator
from openapi_to_code.runtime import UNSET, FieldState, GraphCodec, Record, UnionValue
from openapi_to_code.runtime.codec import is_empty

TEST_DATA = Path(__file__).parent / "test_data"


def codec_for(path=None, schemas=None, **kwargs):
    if path is not None:
        graph = PipelineGenerator(TEST_DATA / path).generate()
    else:
        graph = PipelineGenerator({"openapi": "3.0.3", "paths": {}, "components": {"schemas": schemas}}).generate()
    return GraphCodec(graph, **kwargs)


@pytest.fixture
def petstore():
    return codec_for("petstore.json")


@pytest.fixture
def presence():
    return codec_for("presence.json")


class TestRecursiveTypes:
    """Decoding through reference back-edges"""

    PAYLOAD = {"value": 1, "children": [{"value": 2, "children": [{"value": 3}]}]}

    def test_decode_three_levels(self):
        codec = codec_for("recursive.json")
        root = codec.decode("Node", self.PAYLOAD)

        assert root["value"] == 1
        grandchild = root["children"][0]["children"][0]
        assert grandchild == Record("Node", {"value": 3})
        assert grandchild.get("children") is UNSET

    def test_round_trip(self):
        codec = codec_for("recursive.json")
        assert codec.encode(codec.decode("Node", self.PAYLOAD)) == self.PAYLOAD

    def test_error_location(self):
        codec = codec_for("recursive.json")
        with pytest.raises(DecodeError) as exc_info:
            codec.decode("Node", {"value": 1, "children": [{"value": "two"}]})
        assert exc_info.value.location == "$.children[0].value"

    def test_boolean_is_not_an_integer(self):
        codec = codec_for("recursive.json")
        with pytest.raises(DecodeError):
            codec.decode("Node", {"value": True})

    def test_integral_float_is_an_integer(self):
        codec = codec_for("recursive.json")
        assert codec.decode("Node", {"value": 2.0})["value"] == 2.0

    def test_enum_keeps_true_apart_from_one(self):
        codec = codec_for(schemas={"Flag": {"enum": [1, True, "x"]}})
        assert codec.decode("Flag", True) is True
        assert codec.encode(True, "Flag") is True
        with pytest.raises(DecodeError):
            codec.decode("Flag", False)


class TestUnions:
    """oneOf/anyOf values"""

    def test_multi_mapped_discriminator(self, petstore):
        payload = {"petType": "puppy", "bark": True}
        pet = petstore.decode("Pet", payload)

        assert isinstance(pet, UnionValue)
        assert pet.variant_names == ["Dog"]
        assert pet.discriminator() == "puppy"
        assert pet.as_variant("Dog") == Record("Dog", {"petType": "puppy", "bark": True})
        assert pet.to_json() == payload

    def test_both_mapped_values_select_the_same_variant(self, petstore):
        for value in ("dog", "puppy"):
            pet = petstore.decode("Pet", {"petType": value})
            assert pet.value_by_discriminator() == Record("Dog", {"petType": value})

    def test_bare_name_mapping(self, petstore):
        pet = petstore.decode("Pet", {"petType": "cat", "lives": 7})
        assert pet.value_by_discriminator() == Record("Cat", {"petType": "cat", "lives": 7})

    def test_from_variant_sets_the_discriminator(self, petstore):
        pet = petstore.union("Pet").from_variant("Cat", Record("Cat", {"lives": 9}))
        assert pet.to_json() == {"lives": 9, "petType": "cat"}
        assert pet.discriminator() == "cat"

    def test_from_variant_keeps_an_explicit_discriminator(self, petstore):
        pet = petstore.union("Pet").from_variant("Dog", Record("Dog", {"petType": "puppy"}))
        assert pet.to_json() == {"petType": "puppy"}

    def test_from_variant_replaces_for_one_of(self, petstore):
        pet = petstore.union("Pet")
        pet.from_variant("Cat", Record("Cat", {"lives": 9}))
        pet.from_variant("Dog", Record("Dog", {"petType": "dog", "bark": False}))

        assert pet.variant_names == ["Dog"]
        assert pet.to_json() == {"petType": "dog", "bark": False}

    def test_from_variant_validates(self, petstore):
        with pytest.raises(EncodeError):
            petstore.union("Pet").from_variant("Dog", Record("Dog", {"bark": True}))

    def test_variants_tried_without_discriminator(self, petstore):
        pet = petstore.decode("Pet", {"lives": 3})
        assert pet.variant_names == ["Cat"]
        assert pet.discriminator() is None

    def test_unknown_discriminator_value(self, petstore):
        with pytest.raises(UnionResolutionError):
            petstore.decode("Pet", {"petType": "bird"})

    def test_no_variant_matches(self, petstore):
        with pytest.raises(DecodeError):
            petstore.decode("Pet", "not an object")

    def test_empty_union(self, petstore):
        pet = petstore.union("Pet")
        assert pet.to_json() is None
        assert pet.discriminator() is None
        with pytest.raises(NotSetError):
            pet.as_variant("Dog")
        with pytest.raises(UnionResolutionError):
            pet.as_variant("Bird")
        with pytest.raises(UnionResolutionError):
            pet.value_by_discriminator()

    def test_union_of_a_record_type(self, petstore):
        with pytest.raises(TypeError):
            petstore.union("Dog")

    def test_encode_union(self, petstore):
        pet = petstore.union("Pet").from_variant("Cat", Record("Cat", {"lives": 1}))
        assert petstore.encode(pet) == {"lives": 1, "petType": "cat"}
        assert petstore.encode(pet, "Pet") == {"lives": 1, "petType": "cat"}

    def test_any_of(self):
        codec = codec_for(
            schemas={
                "A": {"type": "object", "properties": {"a": {"type": "string"}}},
                "B": {"type": "object", "properties": {"b": {"type": "integer"}}},
                "AOrB": {"anyOf": [{"$ref": "#/components/schemas/A"}, {"$ref": "#/components/schemas/B"}]},
            }
        )
        value = codec.decode("AOrB", {"a": "x", "b": 1})
        assert value.variant_names == ["A", "B"]
        assert value.as_variant("B") == Record("B", {"b": 1})

        built = codec.union("AOrB").from_variant("A", Record("A", {"a": "x"})).from_variant("B", Record("B", {"b": 1}))
        assert built.variant_names == ["A", "B"]
        assert built.to_json() == {"a": "x", "b": 1}

    def test_null_any_of_decodes_as_empty(self):
        codec = codec_for(
            schemas={
                "A": {"type": "object", "properties": {"a": {"type": "string"}}},
                "B": {"type": "object", "properties": {"b": {"type": "integer"}}},
                "AOrB": {"anyOf": [{"$ref": "#/components/schemas/A"}, {"$ref": "#/components/schemas/B"}]},
            }
        )
        value = codec.decode("AOrB", None)
        assert isinstance(value, UnionValue)
        assert value.variant_names == []
        assert value.to_json() is None

    def test_empty_union_in_required_field(self):
        codec = codec_for(
            schemas={
                "Dog": {"type": "object", "properties": {"bark": {"type": "boolean"}}},
                "Cat": {"type": "object", "properties": {"lives": {"type": "integer"}}},
                "Pet": {"oneOf": [{"$ref": "#/components/schemas/Dog"}, {"$ref": "#/components/schemas/Cat"}]},
                "Owner": {"type": "object", "required": ["pet"], "properties": {"pet": {"$ref": "#/components/schemas/Pet"}}},
            }
        )
        owner = Record("Owner", {"pet": codec.union("Pet")})
        payload = codec.encode(owner)
        assert payload == {"pet": None}

        decoded = codec.decode("Owner", payload)
        assert decoded.state("pet") == FieldState.VALUE
        assert decoded["pet"].to_json() is None
        assert codec.encode(decoded) == payload

    def test_scalar_variants(self):
        codec = codec_for(schemas={"IntOrString": {"oneOf": [{"type": "integer"}, {"type": "string"}]}})
        assert codec.decode("IntOrString", 5).variant_names == ["Integer"]
        assert codec.decode("IntOrString", "five").as_variant("String") == "five"


class TestPresence:
    """Required, optional and nullable properties"""

    def test_decode_states(self, presence):
        record = presence.decode("Presence", {"req": "a", "reqNull": None, "optNull": None})

        assert record.state("req") == FieldState.VALUE
        assert record.state("opt") == FieldState.ABSENT
        assert record.state("reqNull") == FieldState.NULL
        assert record.state("optNull") == FieldState.NULL

    def test_null_optional_decodes_as_absent(self, presence):
        record = presence.decode("Presence", {"req": "a", "reqNull": "b", "opt": None})
        assert not record.is_set("opt")

    @pytest.mark.parametrize(
        "payload,location",
        [
            ({"reqNull": None}, "$.req"),
            ({"req": "a"}, "$.reqNull"),
            ({"req": None, "reqNull": None}, "$.req"),
            ({"req": 1, "reqNull": None}, "$.req"),
        ],
    )
    def test_decode_errors(self, presence, payload, location):
        with pytest.raises(DecodeError) as exc_info:
            presence.decode("Presence", payload)
        assert exc_info.value.location == location

    def test_encode_absent_required_nullable_as_null(self, presence):
        assert presence.encode(Record("Presence", {"req": "a"})) == {"req": "a", "reqNull": None}

    def test_encode_optional_nullable(self, presence):
        record = Record("Presence", {"req": "a", "reqNull": "b", "optNull": None, "opt": None})
        assert presence.encode(record) == {"req": "a", "reqNull": "b", "optNull": None}

    def test_round_trip_keeps_states(self, presence):
        payload = {"req": "a", "opt": "b", "reqNull": None, "optNull": "c"}
        assert presence.encode(presence.decode("Presence", payload)) == payload

    @pytest.mark.parametrize("values", [{}, {"req": None}])
    def test_encode_unset_required(self, presence, values):
        with pytest.raises(EncodeError):
            presence.encode(Record("Presence", values))

    def test_encode_plain_value_needs_a_type(self, presence):
        with pytest.raises(EncodeError):
            presence.encode({"req": "a"})


class TestAdditionalProperties:
    """Maps and undeclared keys"""

    @pytest.fixture
    def codec(self):
        return codec_for(
            schemas={
                "Tagged": {"type": "object", "properties": {"name": {"type": "string"}}, "additionalProperties": {"type": "integer"}},
                "Closed": {"type": "object", "properties": {"name": {"type": "string"}}, "additionalProperties": False},
                "Loose": {"type": "object", "properties": {"name": {"type": "string"}}, "additionalProperties": True},
                "Plain": {"type": "object", "properties": {"name": {"type": "string"}}},
                "Holder": {"type": "object", "properties": {"counts": {"type": "object", "additionalProperties": {"type": "integer"}}}},
            }
        )

    def test_typed(self, codec):
        record = codec.decode("Tagged", {"name": "n", "x": 1})
        assert record.values == {"name": "n"}
        assert record.additional_properties == {"x": 1}
        assert codec.encode(record) == {"name": "n", "x": 1}

    def test_typed_value_mismatch(self, codec):
        with pytest.raises(DecodeError):
            codec.decode("Tagged", {"name": "n", "x": "one"})

    def test_any(self, codec):
        record = codec.decode("Loose", {"name": "n", "extra": [1, 2]})
        assert record.additional_properties == {"extra": [1, 2]}

    @pytest.mark.parametrize("type_name", ["Closed", "Plain"])
    def test_unknown_keys_are_dropped(self, codec, type_name):
        record = codec.decode(type_name, {"name": "n", "extra": 1})
        assert record.values == {"name": "n"}
        assert record.additional_properties == {}

    def test_encode_extra_keys_not_allowed(self, codec):
        with pytest.raises(EncodeError):
            codec.encode(Record("Closed", {"name": "n"}, {"extra": 1}))

    def test_inline_map(self, codec):
        record = codec.decode("Holder", {"counts": {"a": 1, "b": 2}})
        assert record["counts"] == {"a": 1, "b": 2}
        assert codec.encode(record) == {"counts": {"a": 1, "b": 2}}


class TestOmission:
    """x-omitempty and x-omitzero on encode"""

    SCHEMAS = {
        "Options": {
            "type": "object",
            "properties": {
                "tags": {"type": "array", "items": {"type": "string"}, "x-omitempty": True},
                "labels": {"type": "array", "items": {"type": "string"}},
                "note": {"type": "string", "x-omitempty": False},
                "count": {"type": "integer", "x-omitzero": True},
                "level": {"type": "integer", "x-omitzero": True, "x-zero-value-predicate": "isNegative"},
            },
        }
    }

    def test_omit_empty(self):
        codec = codec_for(schemas=self.SCHEMAS)
        encoded = codec.encode(Record("Options", {"tags": [], "labels": []}))
        assert encoded == {"labels": [], "note": None}

    def test_omit_zero(self):
        codec = codec_for(schemas=self.SCHEMAS, zero_predicates={"isNegative": lambda value: value < 0})
        assert codec.encode(Record("Options", {"note": "n", "count": 0, "level": -1})) == {"note": "n"}
        assert codec.encode(Record("Options", {"note": "n", "count": 2, "level": 0})) == {"note": "n", "count": 2, "level": 0}

    def test_unknown_predicate(self):
        codec = codec_for(schemas=self.SCHEMAS)
        with pytest.raises(EncodeError):
            codec.encode(Record("Options", {"level": 3}))

    @pytest.mark.parametrize("value,expected", [(None, True), (0, True), ("", True), ([], True), ({}, True), (False, True), (1, False), ("a", False), ([0], False)])
    def test_is_empty(self, value, expected):
        assert is_empty(value) is expected


class TestRecord:
    """Record values"""

    def test_set_and_unset(self):
        record = Record("Pet")
        record.set("name", "Rex")
        record.set("tag", None)

        assert record.get("name") == "Rex"
        assert record.state("tag") == FieldState.NULL
        record.set("name", UNSET)
        assert "name" not in record
        assert record.get("name") is UNSET
        assert not UNSET


if __name__ == "__main__":
    pytest.main([__file__])
