import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from .config import Config
from .errors import InvalidArgumentsError
from .log_utils import redact_arguments
from .models import (
    HEADER_AUTHORIZATION,
    HEADER_TRAFFIC_CODE,
    PARAM_IN_HEADER,
    PARAM_IN_PATH,
    PARAM_IN_QUERY,
    PARAM_LOCATIONS,
    Endpoint,
    ToolExecutionResult,
    is_security_header,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
BODY_METHODS = ("POST", "PUT", "PATCH")


def create_http_client(config: Config) -> httpx.AsyncClient:
    """
    Shared HTTP client for tool calls

    The pool is bounded (max_connections) and waiting for a free connection is capped
    by pool_acquire_timeout; request_timeout bounds connect/read/write.
    """
    return httpx.AsyncClient(
        follow_redirects=True,
        http2=True,
        limits=httpx.Limits(max_connections=config.max_connections),
        timeout=httpx.Timeout(config.request_timeout, pool=config.pool_acquire_timeout),
    )


def parse_arguments(arguments: Any) -> dict[str, Any]:
    """
    Decode tool arguments into a dict

    Args:
        arguments: JSON text, or an already decoded mapping

    Raises:
        InvalidArgumentsError: If the text is not valid JSON or not a JSON object
    """
    if arguments is None:
        return {}

    if isinstance(arguments, (bytes, bytearray)):
        arguments = arguments.decode("utf-8", errors="replace")

    if isinstance(arguments, str):
        if not arguments.strip():
            return {}
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise InvalidArgumentsError(f"Invalid JSON input: {e}") from e

    if not isinstance(arguments, Mapping):
        raise InvalidArgumentsError(f"Tool arguments must be a JSON object, got {type(arguments).__name__}")

    return dict(arguments)


def as_text(value: Any) -> str:
    """String form of an argument value as it goes into a URL or header"""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class PreparedCall:
    """Outbound HTTP call built from an endpoint and the caller's arguments"""

    method: str
    url: str
    path: str
    query: str
    headers: dict[str, str]
    body: str | None


class APIClient:
    """Executes endpoints against the live API described by their OpenAPI document"""

    def __init__(
        self,
        token: str = "",
        traffic_code: str = "",
        client: httpx.AsyncClient | None = None,
        config: Config | None = None,
    ):
        """
        Initialize the API client

        Args:
            token: Authorization token (with or without "Bearer" prefix); blank disables the header
            traffic_code: Traffic-Code header value; blank disables the header
            client: HTTP client to use (default: a pooled client built from config)
            config: Transport settings used when no client is given
        """
        # Normalize token - ensure it has "Bearer" prefix
        token = (token or "").strip()
        if not token:
            self.token = None
        elif token.startswith(BEARER_PREFIX):
            self.token = token
        else:
            self.token = f"{BEARER_PREFIX}{token}"

        self.traffic_code = (traffic_code or "").strip() or None
        self._client = client
        self._owns_client = client is None
        self._config = config or Config()

    @classmethod
    def from_config(cls, config: Config, client: httpx.AsyncClient | None = None) -> "APIClient":
        return cls(
            token=config.api_authorization_token,
            traffic_code=config.api_traffic_code,
            client=client,
            config=config,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = create_http_client(self._config)
        return self._client

    def _get_headers(self, endpoint: Endpoint, arguments: dict[str, Any]) -> dict[str, str]:
        """Request headers: content type, configured security headers, declared header parameters"""
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers[HEADER_AUTHORIZATION] = self.token
        if self.traffic_code:
            headers[HEADER_TRAFFIC_CODE] = self.traffic_code

        for param in endpoint.parameters_in(PARAM_IN_HEADER):
            # Security headers only ever come from configuration
            if is_security_header(param.name):
                continue
            if arguments.get(param.name) is not None:
                headers[param.name] = as_text(arguments[param.name])

        return headers

    def prepare(self, endpoint: Endpoint, arguments: Any) -> PreparedCall:
        """
        Partition flat tool arguments into path, query string, headers and body

        Raises:
            InvalidArgumentsError: If the arguments are unusable or a path parameter is missing
        """
        args = parse_arguments(arguments)

        path = endpoint.path
        missing = []
        for param in endpoint.parameters_in(PARAM_IN_PATH):
            if args.get(param.name) is None:
                missing.append(param.name)
                continue
            path = path.replace(f"{{{param.name}}}", quote(as_text(args[param.name]), safe=""))
        if missing:
            raise InvalidArgumentsError(f"Missing required path parameters: {', '.join(missing)}")

        query_pairs: list[tuple[str, str]] = []
        for param in endpoint.parameters_in(PARAM_IN_QUERY):
            value = args.get(param.name)
            if value is None:
                continue
            if isinstance(value, list):
                query_pairs.extend((param.name, as_text(item)) for item in value)
            else:
                query_pairs.append((param.name, as_text(value)))
        query = f"?{urlencode(query_pairs)}" if query_pairs else ""

        method = endpoint.method.upper()
        body = None
        if method in BODY_METHODS:
            non_body = {p.name for p in endpoint.parameters if p.location in PARAM_LOCATIONS}
            body_fields = {k: v for k, v in args.items() if k not in non_body and not is_security_header(k)}
            body = json.dumps(body_fields, separators=(",", ":"), ensure_ascii=False)

        return PreparedCall(
            method=method,
            url=f"{endpoint.base_url.rstrip('/')}{path}{query}",
            path=path,
            query=query,
            headers=self._get_headers(endpoint, args),
            body=body,
        )

    async def execute(self, endpoint: Endpoint, arguments: Any) -> ToolExecutionResult:
        """
        Call the endpoint with the given tool arguments

        Never raises: bad arguments give a 400 result, transport failures a 500 result,
        and any upstream HTTP response (including 4xx/5xx) is returned as-is.

        Args:
            endpoint: Endpoint to call
            arguments: Flat argument object (JSON text or mapping)

        Returns:
            ToolExecutionResult with the upstream status code and body
        """
        try:
            call = self.prepare(endpoint, arguments)
        except InvalidArgumentsError as e:
            logger.warning(f"⚠️  Invalid input for tool '{endpoint.operation_id}': {e}")
            return ToolExecutionResult.error(str(e), 400)

        logger.info(f"🔍 {call.method} {call.url} ({endpoint.operation_id})")
        if isinstance(arguments, Mapping):
            logger.debug(f"   Arguments: {redact_arguments(dict(arguments))}")

        try:
            response = await self.client.request(call.method, call.url, headers=call.headers, content=call.body)
        except httpx.TransportError as e:
            message = str(e) or type(e).__name__
            logger.error(f"❌ Call to {call.url} failed: {message}")
            return ToolExecutionResult.error(message, 500)
        except Exception as e:
            logger.exception(f"❌ Unexpected error executing '{endpoint.operation_id}'")
            return ToolExecutionResult.error(f"Unexpected error: {e}", 500)

        logger.info(f"✅ Response: {response.status_code} ({endpoint.operation_id})")
        return ToolExecutionResult(http_status_code=response.status_code, body=response.text)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
