"""
Compilation of an endpoint's parameters and request body into a tool input schema
"""

import logging
from typing import Any

from .models import Endpoint, MediaType, is_security_header
from .schema_resolver import to_json_schema

logger = logging.getLogger(__name__)

MEDIA_TYPE_JSON = "application/json"


def map_openapi_type(openapi_type: str | None) -> str:
    """
    Map an OpenAPI primitive type to the type exposed in the tool schema

    integer -> number; string, boolean and number pass through; anything else is string.
    """
    if openapi_type == "integer":
        return "number"
    if openapi_type in ("string", "boolean", "number"):
        return openapi_type
    return "string"


def coerce_enum(values: list[Any], json_type: str) -> list[Any]:
    """
    Express enum values in the JSON type of the property they constrain

    Values that cannot be expressed in that type are dropped with a warning.
    """
    coerced: list[Any] = []
    for value in values:
        if json_type == "number":
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                coerced.append(value)
                continue
            try:
                if isinstance(value, bool):
                    raise TypeError(value)
                number = float(value)
            except (TypeError, ValueError):
                logger.warning(f"⚠️  Enum value {value!r} is not a number; dropping it")
                continue
            coerced.append(int(number) if number.is_integer() else number)
        elif json_type == "boolean":
            if isinstance(value, bool):
                coerced.append(value)
            elif str(value).lower() in ("true", "false"):
                coerced.append(str(value).lower() == "true")
            else:
                logger.warning(f"⚠️  Enum value {value!r} is not a boolean; dropping it")
        elif isinstance(value, bool):
            coerced.append("true" if value else "false")
        else:
            coerced.append(value if isinstance(value, str) else str(value))
    return list(dict.fromkeys(coerced))


def select_media_type(content: dict[str, MediaType]) -> tuple[str, MediaType] | None:
    """
    Pick the request body media type used for the input schema

    application/json wins, then any other JSON media type (e.g. application/merge-patch+json),
    then the first one declared.
    """
    if not content:
        return None
    if MEDIA_TYPE_JSON in content:
        return MEDIA_TYPE_JSON, content[MEDIA_TYPE_JSON]
    for media_type, value in content.items():
        if media_type.split(";")[0].strip().endswith("json"):
            return media_type, value
    return next(iter(content.items()))


def compile_input_schema(endpoint: Endpoint, document: dict[str, Any] | None) -> tuple[dict[str, Any], list[str]]:
    """
    Build the flat input schema of a tool

    Path, query and header parameters become properties (security headers excluded);
    the request body's top-level properties and required fields are spliced in.

    Args:
        endpoint: Endpoint to compile
        document: Parsed OpenAPI document of the endpoint's project, used to inline $refs

    Returns:
        (schema object, required property names)
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for param in endpoint.parameters:
        if is_security_header(param.name):
            continue

        json_type = map_openapi_type(param.type)
        prop: dict[str, Any] = {"type": json_type}
        if param.description:
            prop["description"] = param.description
        if param.enum_values:
            enum = coerce_enum(param.enum_values, json_type)
            if enum:
                prop["enum"] = enum
        properties[param.name] = prop

        if param.required:
            required.append(param.name)

    request_body = endpoint.request_body
    selected = select_media_type(request_body.content) if request_body else None
    if selected is not None:
        media_type, media = selected
        if media.schema_ is None:
            logger.warning(f"⚠️  Request body ({media_type}) of {endpoint.operation_id} has no usable schema")
        else:
            body_schema = to_json_schema(media.schema_, document)
            body_properties = body_schema.get("properties")
            if isinstance(body_properties, dict):
                for name, prop in body_properties.items():
                    if not is_security_header(name):
                        properties[name] = prop
                required.extend(body_schema.get("required") or [])

    # Each name once, and only names that are actually properties
    required = [name for name in dict.fromkeys(required) if name in properties]

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema, required
