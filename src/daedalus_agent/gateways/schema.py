"""
Tool argument schema conversion.

Tools describe their arguments with plain JSON Schema. Gemini expects its
own schema shape (upper-case type names, no ``$ref``), so references are
inlined here and unsupported constructs are dropped with a warning.
"""

from typing import Any

import structlog

from ..errors import SchemaConversionError

logger = structlog.get_logger()

_GEMINI_TYPES = {
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
    "array": "ARRAY",
    "object": "OBJECT",
}

_REF_PREFIXES = ("#/components/schemas/", "#/$defs/", "#/definitions/")


def _gemini_type(schema: dict[str, Any]) -> str:
    schema_type = schema.get("type")
    if isinstance(schema_type, str) and schema_type in _GEMINI_TYPES:
        return _GEMINI_TYPES[schema_type]

    if "items" in schema:
        return "ARRAY"
    if "properties" in schema or "additionalProperties" in schema:
        return "OBJECT"

    if schema_type is None:
        logger.warning("Schema type is undefined and cannot be inferred", schema=schema)
    else:
        logger.warning("Unsupported schema type", schema_type=schema_type)
    return "TYPE_UNSPECIFIED"


def _resolve_ref(
    ref: str,
    components: dict[str, Any] | None,
    processing: set[str],
) -> dict[str, Any]:
    if ref in processing:
        logger.error("Circular schema reference", ref=ref)
        raise SchemaConversionError(f"Circular reference detected: {ref}")

    if components is None:
        raise SchemaConversionError(
            f"Cannot resolve reference {ref!r}: no component schemas were provided"
        )

    prefix = next((p for p in _REF_PREFIXES if ref.startswith(p)), None)
    name = ref[len(prefix):] if prefix else ""
    if not name or "/" in name:
        raise SchemaConversionError(
            f"Unsupported or malformed $ref {ref!r}; expected one of "
            + ", ".join(f"'{p}Name'" for p in _REF_PREFIXES)
        )

    target = components.get(name)
    if target is None:
        raise SchemaConversionError(f"Reference {ref!r} not found in component schemas")

    processing.add(ref)
    try:
        return to_gemini_schema(target, components, processing)
    finally:
        processing.discard(ref)


def to_gemini_schema(
    schema: dict[str, Any],
    components: dict[str, Any] | None = None,
    processing: set[str] | None = None,
) -> dict[str, Any]:
    """Convert a JSON Schema object into a Gemini function-parameter schema.

    Args:
        schema: The schema to convert. May itself be a ``{"$ref": ...}``.
        components: Named schemas used to resolve ``$ref``. Defaults to the
            root schema's ``$defs`` / ``definitions``.
        processing: References currently being expanded, for cycle detection.

    Raises:
        SchemaConversionError: on circular, malformed or unresolvable references.
    """
    if processing is None:
        processing = set()
        if components is None:
            components = schema.get("$defs") or schema.get("definitions")

    ref = schema.get("$ref")
    if isinstance(ref, str):
        return _resolve_ref(ref, components, processing)

    converted: dict[str, Any] = {"type": _gemini_type(schema)}

    if schema.get("format"):
        converted["format"] = schema["format"]
    if schema.get("description"):
        converted["description"] = schema["description"]
    if isinstance(schema.get("nullable"), bool):
        converted["nullable"] = schema["nullable"]

    enum = schema.get("enum")
    if enum:
        if all(isinstance(e, str) for e in enum):
            converted["enum"] = list(enum)
        elif all(isinstance(e, (str, int, float, bool)) or e is None for e in enum):
            logger.warning("Enum contains non-string values, converting to strings")
            converted["enum"] = [str(e) for e in enum]
        else:
            logger.warning("Enum contains complex values, dropping it")

    if converted["type"] == "ARRAY":
        items = schema.get("items")
        if isinstance(items, dict):
            converted["items"] = to_gemini_schema(items, components, processing)
        else:
            logger.warning("Array schema is missing 'items'")

    if converted["type"] == "OBJECT":
        properties = schema.get("properties")
        if properties:
            converted["properties"] = {
                name: to_gemini_schema(prop, components, processing)
                for name, prop in properties.items()
            }
        if schema.get("required"):
            converted["required"] = list(schema["required"])

    return converted


def to_json_schema_parameters(schema: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a tool schema for providers that accept JSON Schema directly.

    Tools without arguments still need an (empty) object schema.
    """
    if not schema:
        return {"type": "object", "properties": {}}
    return schema
