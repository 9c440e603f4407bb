"""
OpenAPI document parser for extracting endpoints
"""

import logging
import re
from pathlib import Path
from typing import Any

from .config import DEFAULT_FALLBACK_URL
from .models import (
    HTTP_METHODS,
    PARAM_IN_PATH,
    PARAM_LOCATIONS,
    Endpoint,
    MediaType,
    Parameter,
    ParameterItems,
    RequestBody,
    Response,
)
from .schema_resolver import resolve_reference, resolve_schema

logger = logging.getLogger(__name__)

MEDIA_TYPE_JSON = "application/json"
MEDIA_TYPE_FORM = "application/x-www-form-urlencoded"

_PATH_TOKEN = re.compile(r"\{([^{}]+)\}")
_SERVER_VARIABLE = re.compile(r"\{([^{}]+)\}")


def _is_swagger2(document: dict[str, Any]) -> bool:
    return str(document.get("swagger", "")).startswith("2")


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _primitive_type(schema: dict[str, Any] | None) -> str | None:
    """Schema type as a single string (OpenAPI 3.1 allows a list such as ["string", "null"])."""
    if not schema:
        return None
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        return next((t for t in schema_type if isinstance(t, str) and t != "null"), None)
    return schema_type if isinstance(schema_type, str) else None


class OpenAPIParser:
    """Parse OpenAPI (3.x and Swagger 2.0) documents into Endpoint records"""

    def __init__(self, fallback_url: str = DEFAULT_FALLBACK_URL):
        """
        Initialize parser

        Args:
            fallback_url: Base URL used when a document declares no server
        """
        self.fallback_url = fallback_url.rstrip("/")

    def project_name(self, document: dict[str, Any], source: str | Path | None = None) -> str:
        """
        Derive the project identifier of a document

        The API title, lower-cased with whitespace collapsed to hyphens. Without a title
        the spec file's base name is used instead.

        Args:
            document: Parsed OpenAPI document
            source: Path of the spec file the document was read from

        Returns:
            Project identifier
        """
        info = document.get("info")
        title = info.get("title") if isinstance(info, dict) else None
        if isinstance(title, str) and title.strip():
            return re.sub(r"\s+", "-", title.strip()).lower()

        project = Path(source).stem if source else "default-project"
        logger.warning(f"⚠️  API title not found in {source or 'document'}; using '{project}' as the project name")
        return project

    def base_url(self, document: dict[str, Any]) -> str:
        """
        Extract the base URL: the first declared server, else the fallback URL

        Server variables are replaced with their default values. Swagger 2.0 documents
        are read from schemes/host/basePath.
        """
        servers = document.get("servers")
        if isinstance(servers, list) and servers and isinstance(servers[0], dict):
            server = servers[0]
            url = server.get("url")
            if isinstance(url, str) and url.strip():
                variables = server.get("variables") or {}

                def substitute(match: re.Match) -> str:
                    variable = variables.get(match.group(1))
                    if isinstance(variable, dict) and "default" in variable:
                        return str(variable["default"])
                    return match.group(0)

                url = _SERVER_VARIABLE.sub(substitute, url.strip())
                if url.startswith("/"):
                    # Relative server URL: resolve against the fallback origin
                    return self.fallback_url + url.rstrip("/")
                return url.rstrip("/")

        if _is_swagger2(document):
            host = document.get("host")
            base_path = document.get("basePath") or ""
            if isinstance(host, str) and host:
                schemes = document.get("schemes") or ["https"]
                return f"{schemes[0]}://{host}{base_path}".rstrip("/")
            if base_path:
                return (self.fallback_url + base_path).rstrip("/")

        logger.warning(f"⚠️  No server defined in OpenAPI document, using fallback URL: {self.fallback_url}")
        return self.fallback_url

    def extract_endpoints(self, document: dict[str, Any], project: str) -> list[Endpoint]:
        """
        Extract one Endpoint per HTTP method x path of the document

        A broken operation is logged and skipped; the rest of the document is still
        extracted.

        Args:
            document: Parsed OpenAPI document
            project: Project identifier shared by all endpoints of the document

        Returns:
            List of Endpoint records
        """
        endpoints: list[Endpoint] = []
        paths = document.get("paths") or {}
        if not isinstance(paths, dict):
            logger.warning(f"⚠️  'paths' of project '{project}' is not a mapping; no endpoints extracted")
            return endpoints

        base_url = self.base_url(document)

        for path, path_item in paths.items():
            path_item = resolve_reference(path_item, document, "pathItems")
            if path_item is None:
                logger.warning(f"⚠️  Skipping path {path}: path item is missing or unresolvable")
                continue

            shared_parameters = path_item.get("parameters") or []

            for method, operation in path_item.items():
                if method.lower() not in HTTP_METHODS:
                    continue
                if not isinstance(operation, dict):
                    logger.warning(f"⚠️  Skipping {method.upper()} {path}: operation is not a mapping")
                    continue
                try:
                    endpoints.append(
                        self._build_endpoint(str(path), method.lower(), operation, shared_parameters, base_url, project, document)
                    )
                except Exception:
                    logger.exception(f"❌ Failed to build endpoint {method.upper()} {path} of project '{project}'")

        return endpoints

    @staticmethod
    def generate_operation_id(method: str, path: str) -> str:
        """Fallback operationId: lower-case method followed by the path without non-alphanumerics."""
        return method.lower() + re.sub(r"[^a-zA-Z0-9]", "", path)

    def _build_endpoint(
        self,
        path: str,
        method: str,
        operation: dict[str, Any],
        shared_parameters: list[Any],
        base_url: str,
        project: str,
        document: dict[str, Any],
    ) -> Endpoint:
        if not path.startswith("/"):
            path = "/" + path

        operation_id = operation.get("operationId")
        if not isinstance(operation_id, str) or not operation_id:
            operation_id = self.generate_operation_id(method, path)

        parameters, body_parameters = self._extract_parameters(path, shared_parameters, operation, document)

        request_body = self._extract_request_body(operation, document)
        if request_body is None and body_parameters:
            request_body = self._swagger2_request_body(body_parameters, operation, document)

        tags = [str(tag) for tag in (operation.get("tags") or []) if tag is not None]

        return Endpoint(
            operation_id=operation_id,
            method=method,
            path=path,
            summary=_text(operation.get("summary")),
            description=_text(operation.get("description")),
            base_url=base_url,
            project=project,
            parameters=parameters,
            request_body=request_body,
            responses=self._extract_responses(operation, document),
            tags=tags,
        )

    def _extract_parameters(
        self,
        path: str,
        shared_parameters: list[Any],
        operation: dict[str, Any],
        document: dict[str, Any],
    ) -> tuple[list[Parameter], list[dict[str, Any]]]:
        """
        Resolve and merge path-level and operation-level parameters

        Operation parameters override path-level ones with the same name and location.

        Returns:
            (path/query/header parameters, Swagger 2.0 body/formData parameters)
        """
        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for raw in [*shared_parameters, *(operation.get("parameters") or [])]:
            resolved = resolve_reference(raw, document, "parameters")
            if resolved is None or not resolved.get("name"):
                logger.warning(f"⚠️  Skipping unresolvable or unnamed parameter on {path}: {raw}")
                continue
            merged[(str(resolved["name"]), str(resolved.get("in", "query")))] = resolved

        path_tokens = set(_PATH_TOKEN.findall(path))
        parameters: list[Parameter] = []
        body_parameters: list[dict[str, Any]] = []

        for (name, location), raw in merged.items():
            if location in ("body", "formData"):
                body_parameters.append(raw)
                continue
            if location not in PARAM_LOCATIONS:
                logger.debug(f"Ignoring {location} parameter '{name}' on {path}")
                continue
            if location == PARAM_IN_PATH and name not in path_tokens:
                logger.warning(f"⚠️  Path parameter '{name}' does not appear in {path}; ignoring it")
                continue
            parameters.append(self._build_parameter(raw, document))

        return parameters, body_parameters

    def _build_parameter(self, raw: dict[str, Any], document: dict[str, Any]) -> Parameter:
        if "schema" in raw:
            schema = resolve_schema(raw["schema"], document)
        else:
            # Swagger 2.0 keeps type information on the parameter itself
            schema = raw

        param_type = _primitive_type(schema) or "string"
        enum_values = schema.get("enum") if schema else None

        items = None
        if param_type == "array" and schema and "items" in schema:
            items_schema = resolve_schema(schema["items"], document)
            if items_schema is not None:
                items = ParameterItems(type=_primitive_type(items_schema), format=_text(items_schema.get("format")))

        location = str(raw.get("in", "query"))
        return Parameter(
            name=str(raw["name"]),
            location=location,
            description=_text(raw.get("description")),
            # Path parameters are always required in OpenAPI
            required=raw.get("required") is True or location == PARAM_IN_PATH,
            type=param_type,
            format=_text(schema.get("format")) if schema else None,
            default_value=schema.get("default") if schema else None,
            enum_values=list(enum_values) if isinstance(enum_values, list) else None,
            items=items,
        )

    def _build_media_type(self, media_type: Any, document: dict[str, Any]) -> MediaType:
        """
        Resolve the schema of a media type and pick up its example(s)

        The single 'example' wins; otherwise the first named example's value is used.
        """
        if not isinstance(media_type, dict):
            return MediaType()

        schema = resolve_schema(media_type["schema"], document) if "schema" in media_type else None

        examples: dict[str, dict[str, Any]] = {}
        for name, example in (media_type.get("examples") or {}).items():
            resolved = resolve_reference(example, document, "examples")
            if resolved is not None:
                examples[str(name)] = resolved

        example = media_type.get("example")
        if example is None and examples:
            example = next(iter(examples.values())).get("value")

        return MediaType(schema=schema, example=example, examples=examples)

    def _extract_request_body(self, operation: dict[str, Any], document: dict[str, Any]) -> RequestBody | None:
        if "requestBody" not in operation:
            return None

        request_body = resolve_reference(operation["requestBody"], document, "requestBodies")
        if request_body is None:
            return None

        content = {
            str(media_type): self._build_media_type(value, document)
            for media_type, value in (request_body.get("content") or {}).items()
        }
        return RequestBody(
            description=_text(request_body.get("description")),
            required=request_body.get("required") is True,
            content=content,
        )

    def _swagger2_request_body(
        self,
        body_parameters: list[dict[str, Any]],
        operation: dict[str, Any],
        document: dict[str, Any],
    ) -> RequestBody:
        """Translate Swagger 2.0 'body' / 'formData' parameters into a request body."""
        body = next((p for p in body_parameters if p.get("in") == "body"), None)
        if body is not None:
            consumes = operation.get("consumes") or document.get("consumes") or [MEDIA_TYPE_JSON]
            schema = resolve_schema(body.get("schema"), document) if "schema" in body else None
            return RequestBody(
                description=_text(body.get("description")),
                required=body.get("required") is True,
                content={str(media_type): MediaType(schema=schema) for media_type in consumes},
            )

        properties: dict[str, Any] = {}
        required: list[str] = []
        for field in body_parameters:
            prop = {key: field[key] for key in ("type", "format", "description", "enum", "items", "default") if key in field}
            properties[str(field["name"])] = prop
            if field.get("required") is True:
                required.append(str(field["name"]))

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return RequestBody(required=bool(required), content={MEDIA_TYPE_FORM: MediaType(schema=schema)})

    def _extract_responses(self, operation: dict[str, Any], document: dict[str, Any]) -> dict[str, Response]:
        """
        Extract every declared response, keyed by status code string

        Responses without content (e.g. 204) are kept with an empty content map.
        """
        responses: dict[str, Response] = {}
        raw_responses = operation.get("responses") or {}
        if not isinstance(raw_responses, dict):
            return responses

        swagger2 = _is_swagger2(document)
        produces = operation.get("produces") or document.get("produces") or [MEDIA_TYPE_JSON]

        for code, raw in raw_responses.items():
            response = resolve_reference(raw, document, "responses")
            if response is None:
                responses[str(code)] = Response(description="No description")
                continue

            if swagger2 and "schema" in response:
                schema = resolve_schema(response["schema"], document)
                examples = response.get("examples") or {}
                content = {
                    str(media_type): MediaType(schema=schema, example=examples.get(media_type)) for media_type in produces
                }
            else:
                content = {
                    str(media_type): self._build_media_type(value, document)
                    for media_type, value in (response.get("content") or {}).items()
                }

            headers = {}
            for name, header in (response.get("headers") or {}).items():
                resolved = resolve_reference(header, document, "headers")
                if resolved is not None:
                    headers[str(name)] = resolved

            responses[str(code)] = Response(
                description=_text(response.get("description")),
                content=content,
                headers=headers,
            )

        return responses
