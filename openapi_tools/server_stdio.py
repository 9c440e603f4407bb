#!/usr/bin/env python3
"""
MCP server over stdio

Lists every tool compiled from the OpenAPI spec directory and forwards tool calls
to the described APIs. stdout carries JSON-RPC only; all logs go to stderr.
"""

import logging
import sys
from typing import Any

import anyio
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .config import config
from .errors import ToolNotFoundError
from .log_utils import configure_logging, redact_arguments
from .models import ToolExecutionResult
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

SERVER_NAME = "openapi-tools"


def create_mcp_server(registry: ToolRegistry) -> Server:
    """Low-level MCP server whose tools come from the registry"""
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        tools = await registry.aget_tools()
        return [tool.to_mcp_tool() for tool in tools]

    # Argument errors must come back as a 400 ToolExecutionResult from the executor
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        logger.info(f"🔧 Tool call: {name}")
        logger.debug(f"   Arguments: {redact_arguments(arguments or {})}")
        try:
            payload = await registry.invoke(name, arguments or {})
        except ToolNotFoundError as e:
            logger.warning(f"⚠️  {e}")
            payload = ToolExecutionResult.error(str(e), 404).to_json()
        return [types.TextContent(type="text", text=payload)]

    return server


async def run_stdio(registry: ToolRegistry) -> None:
    server = create_mcp_server(registry)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await registry.aclose()


def main():
    """Start the stdio server"""
    configure_logging(config.log_level)

    errors = config.validate()
    if errors:
        logger.error("❌ Configuration errors:")
        for error in errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info("🚀 OpenAPI Tools MCP Server (Stdio Mode)")
    logger.info("=" * 60)
    logger.info(f"📂 Spec directory: {config.openapi_specs_directory}")

    registry = ToolRegistry(config)
    try:
        if config.lazy_tool_loading:
            logger.info("Tools will be loaded on first request")
        else:
            registry.get_tools()

        anyio.run(run_stdio, registry)

    except KeyboardInterrupt:
        logger.info("Shutting down server...")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
