"""
Compute-once registry of compiled tools

The tool list is built at most once per registry, either eagerly at server startup
or on first access, behind a lock so concurrent first callers all see the same list.
"""

import logging
import threading
from collections import defaultdict
from typing import Any

import anyio

from .api_client import APIClient
from .config import Config, config as default_config
from .document_loader import DocumentLoader
from .errors import ToolNotFoundError
from .openapi_parser import OpenAPIParser
from .tool_compiler import Tool, ToolCompiler
from .tool_logger import log_tools

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Owns the loader, the HTTP client and the compiled tool list"""

    def __init__(
        self,
        config: Config | None = None,
        loader: DocumentLoader | None = None,
        api_client: APIClient | None = None,
    ):
        self.config = config or default_config
        self.loader = loader or DocumentLoader(
            self.config.openapi_specs_directory,
            OpenAPIParser(fallback_url=self.config.default_fallback_url),
        )
        self.api_client = api_client or APIClient.from_config(self.config)
        self._lock = threading.Lock()
        self._tools: list[Tool] | None = None
        self._by_name: dict[str, Tool] = {}

    @property
    def loaded(self) -> bool:
        return self._tools is not None

    def get_tools(self) -> list[Tool]:
        """
        Compiled tools, building them on first call

        Raises:
            SpecDirectoryError: If the spec directory is missing or unreadable
        """
        tools = self._tools
        if tools is not None:
            return tools

        with self._lock:
            if self._tools is None:
                logger.info("🔧 Loading tools from OpenAPI specs...")
                endpoints = self.loader.load_all()
                compiler = ToolCompiler(self.loader, self.api_client, self.config.max_tool_name_length)
                compiled = compiler.compile_tools(endpoints)
                log_tools(compiled, self.loader)
                # Index first so a reader that sees _tools also sees _by_name
                self._by_name = {tool.name: tool for tool in compiled}
                self._tools = compiled
            return self._tools

    async def aget_tools(self) -> list[Tool]:
        """get_tools() for async callers; the first load runs in a worker thread."""
        if self._tools is not None:
            return self._tools
        return await anyio.to_thread.run_sync(self.get_tools)

    def get_tool(self, name: str) -> Tool:
        self.get_tools()
        try:
            return self._by_name[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    async def invoke(self, name: str, arguments: Any) -> str:
        """
        Invoke a tool by name

        Returns:
            Serialized ToolExecutionResult

        Raises:
            ToolNotFoundError: If no tool has that name
        """
        await self.aget_tools()
        tool = self.get_tool(name)
        return await tool.invoke(arguments)

    def tools_by_project(self) -> dict[str, list[dict[str, Any]]]:
        grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for tool in self.get_tools():
            endpoint = tool.endpoint
            grouped[endpoint.project].append(
                {
                    "name": tool.name,
                    "description": tool.summary,
                    "method": endpoint.method.upper(),
                    "path": endpoint.path,
                    "baseUrl": endpoint.base_url,
                    "controller": endpoint.controller,
                    "parameters": [
                        {
                            "name": p.name,
                            "type": p.type,
                            "location": p.location,
                            "required": p.required,
                            "description": p.description,
                        }
                        for p in endpoint.parameters
                    ],
                }
            )
        return dict(grouped)

    def catalogue(self) -> dict[str, Any]:
        """Tool listing served by GET /api/tools"""
        return {"totalTools": len(self.get_tools()), "toolsByProject": self.tools_by_project()}

    async def aclose(self) -> None:
        await self.api_client.aclose()
