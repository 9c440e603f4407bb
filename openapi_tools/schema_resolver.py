"""
$ref resolution and JSON-tree expansion of OpenAPI schemas

All helpers work on the raw parsed document (plain dicts, as loaded from JSON/YAML).
A reference that cannot be found is never fatal: it resolves to None (or an empty
schema fragment) and a warning is logged.
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Where named components live in OpenAPI 3.x and Swagger 2.0 documents, per component kind
_COMPONENT_TABLES: dict[str, tuple[tuple[str, ...], ...]] = {
    "schemas": (("components", "schemas"), ("definitions",)),
    "parameters": (("components", "parameters"), ("parameters",)),
    "requestBodies": (("components", "requestBodies"),),
    "responses": (("components", "responses"), ("responses",)),
    "headers": (("components", "headers"),),
    "examples": (("components", "examples"),),
    "pathItems": (("components", "pathItems"),),
}

# Keys copied verbatim when expanding a schema into a JSON tree
_SCALAR_KEYS = ("type", "format", "description", "enum", "default", "example", "nullable")


def _walk_pointer(document: dict[str, Any], ref: str) -> Any:
    """Follow a local JSON pointer (#/a/b/c) through the document."""
    parts = ref[2:].split("/")
    node: Any = document
    for part in parts:
        part = part.replace("~1", "/").replace("~0", "~")
        if isinstance(node, dict):
            if part not in node:
                return None
            node = node[part]
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            return None
    return node


def lookup_ref(document: dict[str, Any] | None, ref: str, kind: str = "schemas") -> dict[str, Any] | None:
    """
    Find the object a $ref points at

    Local pointers (#/components/schemas/Pet, #/definitions/Pet) are walked directly.
    Anything else falls back to a lookup of the last path segment in the component
    tables for `kind`.

    Returns:
        The referenced object, or None if it does not exist
    """
    if not document or not isinstance(ref, str) or not ref:
        return None

    if ref.startswith("#/"):
        target = _walk_pointer(document, ref)
        if isinstance(target, dict):
            return target

    name = ref.rsplit("/", 1)[-1]
    for table_path in _COMPONENT_TABLES.get(kind, ()):
        table: Any = document
        for key in table_path:
            table = table.get(key) if isinstance(table, dict) else None
        if isinstance(table, dict) and isinstance(table.get(name), dict):
            return table[name]

    return None


def resolve_reference(obj: Any, document: dict[str, Any] | None, kind: str = "schemas") -> dict[str, Any] | None:
    """
    Return the concrete object behind `obj`, following $ref chains

    Concrete (non-reference) objects are returned unchanged. A dangling or circular
    chain of references resolves to None and logs a warning.
    """
    if not isinstance(obj, dict):
        return None

    visited: set[str] = set()
    current = obj
    while "$ref" in current:
        ref = current["$ref"]
        if ref in visited:
            logger.warning(f"⚠️  Circular $ref chain while resolving {kind}: {ref}")
            return None
        visited.add(ref)

        target = lookup_ref(document, ref, kind)
        if target is None:
            logger.warning(f"⚠️  Could not resolve {kind} reference: {ref}")
            return None
        current = target

    return current


def resolve_schema(schema: Any, document: dict[str, Any] | None) -> dict[str, Any] | None:
    return resolve_reference(schema, document, "schemas")


def _is_object_schema(schema: dict[str, Any]) -> bool:
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        return "object" in schema_type
    return schema_type == "object" or (schema_type is None and isinstance(schema.get("properties"), dict))


def _is_array_schema(schema: dict[str, Any]) -> bool:
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        return "array" in schema_type
    return schema_type == "array"


def _merge_into(target: dict[str, Any], part: dict[str, Any]) -> None:
    """Merge an expanded allOf member into the expanded parent node."""
    for key in _SCALAR_KEYS:
        if key in part and key not in target:
            target[key] = part[key]

    if isinstance(part.get("properties"), dict):
        target.setdefault("properties", {}).update(part["properties"])

    for name in part.get("required") or []:
        required = target.setdefault("required", [])
        if name not in required:
            required.append(name)


def to_json_schema(schema: Any, document: dict[str, Any] | None, visited_refs: set[str] | None = None) -> dict[str, Any]:
    """
    Recursively expand a schema into a plain JSON tree with every $ref inlined

    Object properties and array items are expanded recursively and allOf members are
    merged into a single object. Every branch carries its own copy of the visited
    reference set, so a reference seen again on the same branch produces a
    "Circular reference to ..." placeholder instead of recursing.

    Args:
        schema: Schema (or $ref) to expand
        document: Parsed OpenAPI document used to resolve references
        visited_refs: References already expanded on the current branch

    Returns:
        Expanded schema; {} for a missing or unresolvable schema
    """
    if visited_refs is None:
        visited_refs = set()

    node: dict[str, Any] = {}
    if not isinstance(schema, dict):
        return node

    if "$ref" in schema:
        ref = schema["$ref"]
        if ref in visited_refs:
            return {"description": f"Circular reference to {ref}"}
        visited_refs.add(ref)

        resolved = lookup_ref(document, ref, "schemas")
        if resolved is None:
            logger.warning(f"⚠️  Could not resolve schema reference: {ref}")
            return node
        return to_json_schema(resolved, document, visited_refs)

    for key in _SCALAR_KEYS:
        if key in schema:
            node[key] = schema[key]

    if _is_object_schema(schema):
        node.setdefault("type", "object")
        properties = schema.get("properties")
        if isinstance(properties, dict):
            node["properties"] = {
                str(name): to_json_schema(prop, document, set(visited_refs)) for name, prop in properties.items()
            }
        required = schema.get("required")
        if isinstance(required, list):
            node["required"] = [name for name in required if isinstance(name, str)]

    if _is_array_schema(schema) and "items" in schema:
        node["items"] = to_json_schema(schema["items"], document, set(visited_refs))

    if isinstance(schema.get("allOf"), list):
        for member in schema["allOf"]:
            _merge_into(node, to_json_schema(member, document, set(visited_refs)))
        if "properties" in node:
            node.setdefault("type", "object")

    for combinator in ("oneOf", "anyOf"):
        if isinstance(schema.get(combinator), list):
            node[combinator] = [to_json_schema(member, document, set(visited_refs)) for member in schema[combinator]]

    return node


def schema_as_json(schema: Any, document: dict[str, Any] | None) -> str:
    """Expanded schema, pretty-printed for logs and tool descriptions."""
    return json.dumps(to_json_schema(schema, document), indent=2, ensure_ascii=False, default=str)
