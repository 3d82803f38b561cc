"""JSON Schemas for plugin manifests and the marketplace registry."""

from __future__ import annotations

from typing import Any

from jsonschema import Draft7Validator

KEBAB_CASE_PATTERN = "^[a-z][a-z0-9-]*$"
SEMVER_PATTERN = "^[0-9]+\\.[0-9]+\\.[0-9]+$"

# Optional field types only. name/version/description are checked by the
# validator itself because they carry different severities.
PLUGIN_MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": True,
    "properties": {
        "author": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "email": {"type": "string"},
                "url": {"type": "string"},
            },
        },
        "homepage": {"type": "string"},
        "repository": {"type": "string"},
        "license": {"type": "string"},
        "keywords": {"type": "array", "items": {"type": "string"}},
    },
}

REGISTRY_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["plugins"],
    "additionalProperties": True,
    "properties": {
        "name": {"type": "string"},
        "version": {"type": "string"},
        "owner": {"type": "object"},
        "categories": {"type": "array", "items": {"type": "object"}},
        "plugins": {"type": "array", "items": {"type": "object"}},
    },
}

REGISTRY_ENTRY_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["name", "source"],
    "additionalProperties": True,
    "properties": {
        "name": {"type": "string", "pattern": KEBAB_CASE_PATTERN},
        "source": {
            "oneOf": [
                {"type": "string"},  # Relative path
                {
                    "type": "object",
                    "properties": {
                        "source": {"type": "string"},
                        "repo": {"type": "string"},
                        "url": {"type": "string"},
                    },
                },
            ]
        },
        "description": {"type": "string"},
        "version": {"type": "string", "pattern": SEMVER_PATTERN},
        "author": {"type": "object", "properties": {"name": {"type": "string"}}},
        "keywords": {"type": "array", "items": {"type": "string"}},
        "category": {"type": "string"},
        "featured": {"type": "boolean"},
        "status": {"type": "string"},
    },
}


def validate_json_schema(data: Any, schema: dict[str, Any], context: str) -> list[str]:
    """Validate JSON data against a JSON Schema Draft 7 definition.

    Args:
        data: Parsed JSON value to validate
        schema: JSON Schema dict (Draft 7 format)
        context: Human-readable prefix for messages

    Returns:
        List of messages with context and field path, empty when valid
    """
    errors: list[str] = []
    try:
        for error in Draft7Validator(schema).iter_errors(data):
            path = " -> ".join(str(p) for p in error.path) if error.path else "root"
            errors.append(f"{context}: {path}: {error.message}")
    except RecursionError:
        errors.append(f"{context}: Data structure too deeply nested (recursion limit)")
    return errors
