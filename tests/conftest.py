"""Shared fixtures: a small OpenAPI document, mock HTTP transport and a tool registry."""

import json
from pathlib import Path

import httpx
import pytest

from openapi_tools.api_client import APIClient
from openapi_tools.config import Config
from openapi_tools.document_loader import DocumentLoader
from openapi_tools.openapi_parser import OpenAPIParser
from openapi_tools.tool_registry import ToolRegistry


def make_shop_document() -> dict:
    return {
        "openapi": "3.0.1",
        "info": {"title": "Shop", "version": "1.0"},
        "servers": [{"url": "https://shop.example.com/api/"}],
        "paths": {
            "/users/{id}": {
                "get": {
                    "operationId": "getUser",
                    "tags": ["users-controller"],
                    "summary": "Get a user",
                    "parameters": [
                        {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}},
                        {"name": "Authorization", "in": "header", "schema": {"type": "string"}},
                    ],
                    "responses": {
                        "200": {
                            "description": "The user",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}},
                        },
                        "404": {"description": "Not found"},
                    },
                }
            },
            "/orders": {
                "post": {
                    "operationId": "create",
                    "tags": ["orders"],
                    "summary": "Create an order",
                    "parameters": [
                        {"name": "traceId", "in": "header", "schema": {"type": "string"}, "description": "Trace id"},
                    ],
                    "requestBody": {
                        "required": True,
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Order"}}},
                    },
                    "responses": {"201": {"description": "Created"}},
                }
            },
        },
        "components": {
            "schemas": {
                "User": {
                    "type": "object",
                    "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
                },
                "Order": {
                    "type": "object",
                    "required": ["sku", "qty"],
                    "properties": {
                        "sku": {"type": "string"},
                        "qty": {"type": "integer"},
                        "note": {"type": "string"},
                    },
                },
            }
        },
    }


def write_json(directory: Path, name: str, document: dict) -> Path:
    path = directory / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def shop_document() -> dict:
    return make_shop_document()


@pytest.fixture
def loaded_shop(shop_document):
    """(loader, endpoints) for the shop document, registered under its project name."""
    loader = DocumentLoader("unused")
    parser = OpenAPIParser()
    project = parser.project_name(shop_document)
    loader.register_document(project, shop_document)
    return loader, parser.extract_endpoints(shop_document, project)


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def mock_http_client(recorded_requests):
    """AsyncClient whose transport records every request and answers 200 {"ok": true}"""

    def handler(request: httpx.Request) -> httpx.Response:
        recorded_requests.append(request)
        return httpx.Response(200, json={"ok": True})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def specs_dir(tmp_path, shop_document):
    write_json(tmp_path, "shop.json", shop_document)
    return tmp_path


@pytest.fixture
def registry(specs_dir, mock_http_client):
    config = Config(openapi_specs_directory=str(specs_dir), lazy_tool_loading=False)
    api_client = APIClient(token="secret-token", traffic_code="TC-1", client=mock_http_client)
    return ToolRegistry(config, api_client=api_client)
