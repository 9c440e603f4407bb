"""
Compilation of endpoints into callable tools

Each endpoint becomes a Tool: a unique name, a Markdown description for the model,
a flat JSON input schema and an async invocation bound to the endpoint.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from mcp import types

from .api_client import APIClient
from .config import DEFAULT_MAX_TOOL_NAME_LENGTH
from .document_loader import DocumentLoader
from .models import Endpoint, ToolExecutionResult, is_security_header
from .schema_compiler import compile_input_schema
from .tool_naming import synthesize_tool_name

logger = logging.getLogger(__name__)

NO_SUMMARY = "No summary available."


@dataclass(frozen=True)
class Tool:
    """A compiled tool: metadata plus the function that executes the endpoint"""

    name: str
    description: str
    summary: str
    endpoint: Endpoint
    input_schema: dict[str, Any]
    function: Callable[[Any], Awaitable[str]] = field(repr=False, compare=False)

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))

    async def invoke(self, arguments: Any) -> str:
        """
        Execute the tool

        Args:
            arguments: JSON object text (or decoded mapping) with the flat tool arguments

        Returns:
            Serialized ToolExecutionResult ({"httpStatusCode": ..., "body": ...})
        """
        return await self.function(arguments)

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.input_schema)


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class ToolCompiler:
    """Turn extracted endpoints into Tools"""

    def __init__(self, loader: DocumentLoader, api_client: APIClient, max_tool_name_length: int = DEFAULT_MAX_TOOL_NAME_LENGTH):
        self.loader = loader
        self.api_client = api_client
        self.max_tool_name_length = max_tool_name_length

    def compile_tools(self, endpoints: list[Endpoint]) -> list[Tool]:
        """
        Compile every endpoint into a tool

        Names are unique across the whole run. An endpoint that fails to compile is
        logged and skipped; the others are still returned.
        """
        used_names: set[str] = set()
        tools: list[Tool] = []

        for endpoint in endpoints:
            try:
                name = synthesize_tool_name(endpoint, used_names, self.max_tool_name_length)
                tool = self.compile_tool(endpoint, name)
            except Exception:
                logger.exception(f"❌ Failed to generate tool for endpoint: {endpoint.method.upper()} {endpoint.path}")
                continue

            tools.append(tool)
            logger.info(f"✅ Tool added: {tool.name} ({endpoint.method.upper()} {endpoint.path})")

        logger.info(f"✓ Generated {len(tools)} tools from {len(endpoints)} endpoints")
        return tools

    def compile_tool(self, endpoint: Endpoint, name: str) -> Tool:
        schema, _ = compile_input_schema(endpoint, self.loader.get_document(endpoint.project))
        return Tool(
            name=name,
            description=self.generate_description(endpoint),
            summary=endpoint.summary or NO_SUMMARY,
            endpoint=endpoint,
            input_schema=schema,
            function=self._bind(endpoint),
        )

    def _bind(self, endpoint: Endpoint) -> Callable[[Any], Awaitable[str]]:
        api_client = self.api_client

        async def call(arguments: Any) -> str:
            try:
                result = await api_client.execute(endpoint, arguments)
            except Exception as e:
                logger.exception(f"❌ Tool execution failed for {endpoint.operation_id}")
                result = ToolExecutionResult.error(f"Unexpected error: {e}", 500)
            return result.to_json()

        return call

    def generate_description(self, endpoint: Endpoint) -> str:
        """
        Markdown description of what the tool does and how to call it

        Covers the API context, summary, parameters (security headers excluded),
        the request body schema and each response with headers and examples.
        """
        lines = [f"API: {endpoint.project}. Controller: {endpoint.controller}. Summary: {endpoint.summary or NO_SUMMARY}"]

        parameters = [p for p in endpoint.parameters if not is_security_header(p.name)]
        if parameters:
            lines.append("Request parameters:")
            for p in parameters:
                details = " ".join(part for part in (p.description, "(required)" if p.required else None) if part)
                lines.append(f"- **{p.name}** ({p.location}, {p.type}): {details}")

        request_body = endpoint.request_body
        if request_body and request_body.content:
            lines.append("Request body:")
            media = next(iter(request_body.content.values()))
            if media.schema_ is not None:
                try:
                    lines.extend(["```json", self.loader.schema_as_json(endpoint.project, media.schema_), "```"])
                except Exception:
                    logger.exception(f"❌ Could not render request body schema for {endpoint.operation_id}")
                    lines.append("Request body schema unavailable.")

        if endpoint.responses:
            lines.append("Possible responses:")
            for code, response in endpoint.responses.items():
                lines.append(f"- **{code}**: {response.description or ''}")

                if response.headers:
                    lines.append("  - Response headers:")
                    for header_name, header in response.headers.items():
                        lines.append(f"    - **{header_name}**: {header.get('description') or ''}")

                for media_type, media in response.content.items():
                    if media.examples:
                        lines.append(f"  - Response examples (`{media_type}`):")
                        for example_name, example in media.examples.items():
                            lines.append(f"    - Example '{example_name}':")
                            if example.get("description"):
                                lines.append(f"      > {example['description']}")
                            if example.get("value") is not None:
                                lines.extend(["      ```json", _pretty(example["value"]), "      ```"])
                    elif media.example is not None:
                        lines.extend([f"  - Response example (`{media_type}`):", "    ```json", _pretty(media.example), "    ```"])
                    elif media.schema_ is not None:
                        schema_json = self.loader.schema_as_json(endpoint.project, media.schema_)
                        lines.extend([f"  - Response structure (`{media_type}`):", "    ```json", schema_json, "    ```"])

        return "\n".join(lines) + "\n"
