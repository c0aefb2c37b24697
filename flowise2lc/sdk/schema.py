# sdk/schema.py

"""Schema validation utilities for flow documents."""

from typing import Dict, Any, List

import jsonschema

FLOW_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Flowise flow export",
    "type": "object",
    "required": ["nodes", "edges"],
    "properties": {
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "type", "data"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "type": {"type": "string"},
                    "position": {"type": "object"},
                    "data": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string"},
                            "label": {"type": "string"},
                            "category": {"type": "string"},
                            "inputParams": {"type": "array"},
                            "inputAnchors": {"type": "array"},
                            "outputAnchors": {"type": "array"},
                            "inputs": {"type": "object"},
                        },
                    },
                },
            },
        },
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "properties": {
                    "id": {"type": "string"},
                    "source": {"type": "string"},
                    "target": {"type": "string"},
                    "sourceHandle": {"type": ["string", "null"]},
                    "targetHandle": {"type": ["string", "null"]},
                },
            },
        },
    },
}


def format_error_path(error: jsonschema.exceptions.ValidationError) -> str:
    """Render an error location as `nodes[2].data`."""
    path = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "$"


def iter_schema_errors(data: Any, schema: Dict[str, Any] = FLOW_SCHEMA) -> List[jsonschema.exceptions.ValidationError]:
    """Collect every schema violation, ordered by location."""
    validator = jsonschema.Draft7Validator(schema)
    return sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
