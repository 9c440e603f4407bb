#!/usr/bin/env python3
"""
HTTP server for the compiled tools

Routes:
- GET /health: liveness and load state
- GET /api/tools: tool catalogue grouped by project
- POST /api/tools/{name}: invoke a tool with a JSON object body
"""

import contextlib
import logging
import sys

import anyio
import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .config import Config, config as default_config
from .errors import ToolNotFoundError
from .log_utils import configure_logging
from .models import ToolExecutionResult
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


def create_app(registry: ToolRegistry | None = None, config: Config | None = None) -> Starlette:
    config = config or default_config
    registry = registry or ToolRegistry(config)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        if not config.lazy_tool_loading:
            tools = await registry.aget_tools()
            logger.info(f"✓ {len(tools)} tools ready")
        try:
            yield
        finally:
            await registry.aclose()

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "healthy",
                "service": "openapi-tools-http",
                "toolsLoaded": registry.loaded,
            }
        )

    async def list_tools(request: Request) -> JSONResponse:
        await registry.aget_tools()
        return JSONResponse(registry.catalogue())

    async def invoke_tool(request: Request) -> Response:
        name = request.path_params["name"]
        body = await request.body()
        try:
            payload = await registry.invoke(name, body)
        except ToolNotFoundError as e:
            return JSONResponse({"error": str(e), "status": 404}, status_code=404)
        result = ToolExecutionResult.model_validate_json(payload)
        logger.info(f"📨 {name} -> {result.http_status_code}")
        return Response(payload, media_type="application/json")

    app = Starlette(
        debug=config.debug,
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/api/tools", list_tools, methods=["GET"]),
            Route("/api/tools/{name}", invoke_tool, methods=["POST"]),
        ],
        lifespan=lifespan,
    )
    app.state.registry = registry
    return app


async def run_server_async(config: Config) -> None:
    app = create_app(config=config)
    uvicorn_config = uvicorn.Config(
        app,
        host=config.http_host,
        port=config.http_port,
        log_level=config.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    server = uvicorn.Server(uvicorn_config)
    await server.serve()


def main():
    """Start the HTTP server"""
    config = default_config
    configure_logging(config.log_level)

    errors = config.validate()
    if errors:
        logger.error("❌ Configuration errors:")
        for error in errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    try:
        logger.info("=" * 60)
        logger.info("🚀 OpenAPI Tools Server (HTTP Mode)")
        logger.info("=" * 60)
        logger.info(f"🌐 Starting server on {config.http_host}:{config.http_port}")
        logger.info(f"📂 Spec directory: {config.openapi_specs_directory}")
        logger.info(f"✓ Tool catalogue: http://{config.http_host}:{config.http_port}/api/tools")
        logger.info(f"✓ Health check: http://{config.http_host}:{config.http_port}/health")

        anyio.run(run_server_async, config)

    except KeyboardInterrupt:
        logger.info("Shutting down server...")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
