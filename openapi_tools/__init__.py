"""
OpenAPI Tools
Compiles OpenAPI documents into LLM-callable tools and serves them over MCP and HTTP
"""

__version__ = "1.0.0"

from .api_client import APIClient
from .config import config
from .document_loader import DocumentLoader
from .openapi_parser import OpenAPIParser
from .tool_compiler import Tool, ToolCompiler
from .tool_registry import ToolRegistry

__all__ = [
    "APIClient",
    "config",
    "DocumentLoader",
    "OpenAPIParser",
    "Tool",
    "ToolCompiler",
    "ToolRegistry",
]
