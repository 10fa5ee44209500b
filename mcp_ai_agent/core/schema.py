"""
Schema helpers.

Schemas can be given either as pydantic models or as pre-built JSON
schemas wrapped in `JSONSchema`. These helpers produce the JSON schema
sent to the model and validate what comes back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import jsonschema
from pydantic import BaseModel, ValidationError


@dataclass
class JSONSchema:
    """A pre-built JSON schema. Values are validated with jsonschema when `validate` is set."""

    json_schema: Dict[str, Any]
    validate: bool = True


def json_schema(schema: Dict[str, Any], validate: bool = True) -> JSONSchema:
    return JSONSchema(json_schema=schema, validate=validate)


def is_model_class(schema: Any) -> bool:
    return isinstance(schema, type) and issubclass(schema, BaseModel)


def to_json_schema(schema: Any) -> Dict[str, Any]:
    if is_model_class(schema):
        return schema.model_json_schema()
    if isinstance(schema, JSONSchema):
        return schema.json_schema
    if isinstance(schema, dict):
        return schema
    raise TypeError(f"Unsupported schema type: {type(schema).__name__}")


def parse_object(schema: Any, value: Any) -> Any:
    """
    Validate `value` against `schema`.

    Returns a model instance for pydantic schemas and the value itself for
    JSON schemas. Raises ValueError when validation fails.
    """
    if is_model_class(schema):
        try:
            return schema.model_validate(value)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc

    if isinstance(schema, JSONSchema) and not schema.validate:
        return value

    try:
        jsonschema.validate(instance=value, schema=to_json_schema(schema))
    except jsonschema.ValidationError as exc:
        raise ValueError(exc.message) from exc
    return value
