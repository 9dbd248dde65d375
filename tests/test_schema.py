"""
Tests for tool schema conversion.
"""

import pytest

from daedalus_agent.errors import SchemaConversionError
from daedalus_agent.gateways.schema import to_gemini_schema, to_json_schema_parameters


def test_basic_object_conversion():
    """Test types are upper-cased and structure preserved."""
    schema = {
        "type": "object",
        "description": "Arguments",
        "properties": {
            "name": {"type": "string", "format": "email"},
            "count": {"type": "integer", "nullable": True},
            "tags": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["name"],
    }

    converted = to_gemini_schema(schema)

    assert converted["type"] == "OBJECT"
    assert converted["description"] == "Arguments"
    assert converted["required"] == ["name"]
    assert converted["properties"]["name"] == {"type": "STRING", "format": "email"}
    assert converted["properties"]["count"] == {"type": "INTEGER", "nullable": True}
    assert converted["properties"]["tags"] == {"type": "ARRAY", "items": {"type": "STRING"}}


def test_type_inferred_from_shape():
    """Test missing types are inferred from items/properties."""
    assert to_gemini_schema({"items": {"type": "number"}})["type"] == "ARRAY"
    assert to_gemini_schema({"properties": {}})["type"] == "OBJECT"
    assert to_gemini_schema({})["type"] == "TYPE_UNSPECIFIED"


def test_enum_handling():
    """Test enums are kept, stringified, or dropped."""
    assert to_gemini_schema({"type": "string", "enum": ["a", "b"]})["enum"] == ["a", "b"]
    assert to_gemini_schema({"type": "integer", "enum": [1, 2]})["enum"] == ["1", "2"]
    assert "enum" not in to_gemini_schema({"type": "object", "enum": [{"a": 1}]})


def test_refs_resolved_from_defs():
    """Test $ref is inlined from the root schema's $defs."""
    schema = {
        "type": "object",
        "properties": {"address": {"$ref": "#/$defs/Address"}},
        "$defs": {
            "Address": {"type": "object", "properties": {"city": {"type": "string"}}},
        },
    }

    converted = to_gemini_schema(schema)

    assert converted["properties"]["address"]["properties"]["city"] == {"type": "STRING"}


def test_refs_resolved_from_components():
    """Test OpenAPI-style component references."""
    components = {"Pet": {"type": "string"}}

    converted = to_gemini_schema({"$ref": "#/components/schemas/Pet"}, components)

    assert converted == {"type": "STRING"}


def test_same_ref_used_twice_is_not_circular():
    """Test sibling uses of one reference are fine."""
    schema = {
        "type": "object",
        "properties": {
            "a": {"$ref": "#/$defs/Leaf"},
            "b": {"$ref": "#/$defs/Leaf"},
        },
        "$defs": {"Leaf": {"type": "boolean"}},
    }

    converted = to_gemini_schema(schema)

    assert converted["properties"]["a"] == converted["properties"]["b"] == {"type": "BOOLEAN"}


def test_circular_ref_rejected():
    """Test self-referencing schemas fail instead of recursing forever."""
    schema = {
        "type": "object",
        "properties": {"node": {"$ref": "#/$defs/Node"}},
        "$defs": {
            "Node": {
                "type": "object",
                "properties": {"next": {"$ref": "#/$defs/Node"}},
            },
        },
    }

    with pytest.raises(SchemaConversionError, match="Circular"):
        to_gemini_schema(schema)


@pytest.mark.parametrize(
    "ref, components",
    [
        ("#/$defs/Missing", {"Other": {"type": "string"}}),
        ("#/components/schemas/Pet", None),
        ("http://example.com/schema.json", {"Pet": {"type": "string"}}),
        ("#/$defs/a/b", {"a": {"type": "string"}}),
    ],
)
def test_unresolvable_ref_rejected(ref, components):
    """Test unresolvable or malformed references raise."""
    with pytest.raises(SchemaConversionError):
        to_gemini_schema({"$ref": ref}, components)


def test_json_schema_parameters():
    """Test empty schemas become an empty object schema."""
    assert to_json_schema_parameters(None) == {"type": "object", "properties": {}}
    assert to_json_schema_parameters({}) == {"type": "object", "properties": {}}
    schema = {"type": "object", "properties": {"a": {"type": "string"}}}
    assert to_json_schema_parameters(schema) is schema
