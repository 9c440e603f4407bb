#!/usr/bin/env python3
"""
Test the MCP stdio server handlers
"""

import json

import pytest
from mcp import types

from openapi_tools.api_client import APIClient
from openapi_tools.config import Config
from openapi_tools.server_stdio import SERVER_NAME, create_mcp_server
from openapi_tools.tool_registry import ToolRegistry


@pytest.fixture
def server(registry):
    return create_mcp_server(registry)


@pytest.fixture
def reports_server(tmp_path, mock_http_client):
    """Server over a spec whose only operation takes an integer enum query parameter"""
    document = {
        "openapi": "3.0.1",
        "info": {"title": "Reports", "version": "1.0"},
        "servers": [{"url": "https://reports.example.com"}],
        "paths": {
            "/reports": {
                "get": {
                    "operationId": "listReports",
                    "tags": ["reports"],
                    "parameters": [
                        {"name": "level", "in": "query", "required": True, "schema": {"type": "integer", "enum": [1, 2]}},
                    ],
                    "responses": {"200": {"description": "Reports"}},
                }
            }
        },
    }
    (tmp_path / "reports.json").write_text(json.dumps(document), encoding="utf-8")
    config = Config(openapi_specs_directory=str(tmp_path), lazy_tool_loading=False)
    registry = ToolRegistry(config, api_client=APIClient(client=mock_http_client))
    return create_mcp_server(registry)


async def _call(server, name: str, arguments: dict) -> types.CallToolResult:
    handler = server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(method="tools/call", params=types.CallToolRequestParams(name=name, arguments=arguments))
    return (await handler(request)).root


class TestStdioServer:
    """Test tool listing and dispatch"""

    @pytest.mark.unit
    def test_server_name(self, server):
        """Test that the server advertises its name"""
        assert server.name == SERVER_NAME

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_list_tools(self, server):
        """Test that every compiled tool is listed with its input schema"""
        handler = server.request_handlers[types.ListToolsRequest]

        result = (await handler(types.ListToolsRequest(method="tools/list"))).root

        names = {tool.name for tool in result.tools}
        assert names == {"shop-users-get_user", "shop-orders-create"}
        create = next(tool for tool in result.tools if tool.name == "shop-orders-create")
        assert create.inputSchema["required"] == ["sku", "qty"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_call_tool(self, server, recorded_requests):
        """Test that a tool call is forwarded to the API"""
        result = await _call(server, "shop-users-get_user", {"id": 5})

        assert result.isError is False
        payload = json.loads(result.content[0].text)
        assert payload["httpStatusCode"] == 200
        assert str(recorded_requests[0].url) == "https://shop.example.com/api/users/5"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        """Test that an unknown tool name returns a 404 payload"""
        result = await _call(server, "nope", {})

        payload = json.loads(result.content[0].text)
        assert payload["httpStatusCode"] == 404
        assert json.loads(payload["body"])["error"] == "Unknown tool: nope"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_path_parameter_is_400(self, server, recorded_requests):
        """Test that a missing path parameter returns the executor's 400 payload"""
        result = await _call(server, "shop-users-get_user", {})

        assert result.isError is False
        payload = json.loads(result.content[0].text)
        assert payload["httpStatusCode"] == 400
        assert json.loads(payload["body"])["error"] == "Missing required path parameters: id"
        assert recorded_requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_integer_enum_argument(self, reports_server, recorded_requests):
        """Test that an integer enum value is accepted and sent as a query parameter"""
        handler = reports_server.request_handlers[types.ListToolsRequest]
        tools = (await handler(types.ListToolsRequest(method="tools/list"))).root.tools
        assert tools[0].inputSchema["properties"]["level"] == {"type": "number", "enum": [1, 2]}

        result = await _call(reports_server, tools[0].name, {"level": 1})

        assert result.isError is False
        payload = json.loads(result.content[0].text)
        assert payload["httpStatusCode"] == 200
        assert str(recorded_requests[0].url) == "https://reports.example.com/reports?level=1"
