"""
Pydantic models for parsed OpenAPI operations and tool execution results
"""

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

PARAM_IN_PATH = "path"
PARAM_IN_QUERY = "query"
PARAM_IN_HEADER = "header"
PARAM_LOCATIONS = (PARAM_IN_PATH, PARAM_IN_QUERY, PARAM_IN_HEADER)

# Injected from configuration into every outbound call; never part of a tool's arguments
HEADER_AUTHORIZATION = "Authorization"
HEADER_TRAFFIC_CODE = "Traffic-Code"
SECURITY_HEADERS = (HEADER_AUTHORIZATION, HEADER_TRAFFIC_CODE)

_CONTROLLER_SUFFIX = re.compile(r"[-_\s]?controller$", re.IGNORECASE)


def is_security_header(name: str) -> bool:
    return name.lower() in (header.lower() for header in SECURITY_HEADERS)


class ParameterItems(BaseModel):
    """Item type of an array parameter"""

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    format: str | None = None


class Parameter(BaseModel):
    """A path, query or header parameter of an operation"""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str
    description: str | None = None
    required: bool = False
    type: str = "string"
    format: str | None = None
    default_value: Any | None = None
    enum_values: list[Any] | None = None
    items: ParameterItems | None = None


class MediaType(BaseModel):
    """Schema and examples declared for one media type"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # "schema" would shadow a BaseModel attribute
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    example: Any | None = None
    examples: dict[str, dict[str, Any]] = Field(default_factory=dict)


class RequestBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str | None = None
    required: bool = False
    content: dict[str, MediaType] = Field(default_factory=dict)


class Response(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str | None = None
    content: dict[str, MediaType] = Field(default_factory=dict)
    headers: dict[str, dict[str, Any]] = Field(default_factory=dict)


class Endpoint(BaseModel):
    """One HTTP operation (method x path) extracted from an OpenAPI document"""

    model_config = ConfigDict(frozen=True)

    operation_id: str
    method: str
    path: str
    summary: str | None = None
    description: str | None = None
    base_url: str
    project: str
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: RequestBody | None = None
    responses: dict[str, Response] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)

    @property
    def controller(self) -> str:
        """First tag without its "controller" suffix, or "general" for an untagged endpoint"""
        if not self.tags:
            return "general"
        return _CONTROLLER_SUFFIX.sub("", self.tags[0].strip()).strip() or "general"

    def parameters_in(self, location: str) -> list[Parameter]:
        return [p for p in self.parameters if p.location == location]


class ToolExecutionResult(BaseModel):
    """Normalized outcome of a tool invocation: upstream status code and raw body"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    http_status_code: int = Field(alias="httpStatusCode")
    body: str = ""

    @classmethod
    def error(cls, message: str, status: int) -> "ToolExecutionResult":
        return cls(http_status_code=status, body=json.dumps({"error": message, "status": status}))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
